"""Process-wide logging for the review service.

litellm configures its own loggers when it is first imported, so
logging is set up in two steps around that import:

1. ``setup_logging()`` runs before ``homework_review.services`` is
   imported. It pins ``LITELLM_LOG`` and installs the root handler.
2. ``cleanup_third_party_handlers()`` runs once every import is done.
   It strips the handlers litellm attached so each record is emitted
   once, by the root handler.

``set_level()`` applies ``Settings.log_level`` once settings are loaded.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"

_LITELLM_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy")

# Capped at WARNING: chatty at INFO, never useful for grading issues
_SUPPRESSED_LOGGERS = (
    *_LITELLM_LOGGERS,
    "httpx",
    "multipart",
    "python_multipart",
)

_phase1_done = False
_phase2_done = False


def _resolve_level(level: str) -> int:
    return getattr(logging, level.upper())


def setup_logging(level: str = "INFO") -> None:
    """Install the root handler and quiet third-party loggers.

    Runs at most once per process.
    """
    global _phase1_done  # noqa: PLW0603
    if _phase1_done:
        return
    _phase1_done = True

    # Read by litellm._logging at import; an explicit value wins
    os.environ.setdefault("LITELLM_LOG", "WARNING")

    logging.basicConfig(
        level=_resolve_level(level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_level(level: str) -> None:
    logging.getLogger().setLevel(_resolve_level(level))


def cleanup_third_party_handlers() -> None:
    """Detach litellm's own handlers and route its records to root.

    Runs at most once per process.
    """
    global _phase2_done  # noqa: PLW0603
    if _phase2_done:
        return
    _phase2_done = True

    for name in _LITELLM_LOGGERS:
        litellm_logger = logging.getLogger(name)
        litellm_logger.handlers.clear()
        litellm_logger.propagate = True
