"""Homework review service: vision-model grading with tolerant parsing."""

__version__ = "0.1.0"
