"""LLM prompts for the homework review service.

All prompts sent to the vision model live here.
"""

# ── Grading prompt ───────────────────────────────────────────────

GRADING_PROMPT = """\
You are a teacher grading an exam. The image is a student's answer \
sheet; please grade it. Reply with a JSON array only, one object per \
question, in this shape:
[{
  "id": "question number",
  "result": true,
  "question": "question text; for multiple choice include the options",
  "answer": "the student's handwritten answer",
  "correctAnswer": "the correct answer"
}]
"result" is true when the student's answer is correct, false otherwise.\
"""
