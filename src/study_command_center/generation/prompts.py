"""System instructions and prompt builders for every generation task."""

import json
from datetime import date

PLAN_SYSTEM_PROMPT = """\
You are a strict Exam Planner AI.
Create a JSON schedule for an SSC CGL aspirant.
Total time MUST be approx {target_hours} hours.
MANDATORY: Include exactly one 60-minute session titled "Reading & Practice Task" \
that uses the user's uploaded library material.
Focus on: {weak_areas}.
Format: JSON Array of objects: [{{"title": "Subject", "duration_min": 90, "type": "Deep Work"}}, ...]
IMPORTANT: Return Strictly Valid JSON. Escape all backslashes in strings."""

MOCK_TEST_SYSTEM_PROMPT = """\
You are an Exam Setter for SSC CGL.
Task: Generate a JSON object with a "questions" array.
Create {count} Multiple Choice Questions based on the User's Topic/Material. \
Ensure questions are distributed evenly across the entire content provided.
Each question object must have:
- id (1-{count})
- question_en (English text)
- question_hi (Hindi translation)
- options_en (array of 4 English strings)
- options_hi (array of 4 Hindi strings)
- correctIndex (0-3)
- explanation_en (Detailed solution in English)
- explanation_hi (Detailed solution in Hindi).
IMPORTANT: Return Strictly Valid JSON. Escape all backslashes in math formulas \
(e.g. use \\\\theta instead of \\theta)."""

VOCAB_SYSTEM_PROMPT = """\
You are an expert English teacher for SSC CGL exams.
Generate {count} important, high-frequency vocabulary words.
Format: Strictly a JSON Array of objects.
Each object must have:
- "word": The word (String)
- "hindi": Hindi meaning (String)
- "type": Part of speech (String)
- "meaning": Short English definition (String)
Example: [{{"word": "Diligent", "hindi": "मेहनती", "type": "Adj", \
"meaning": "Having or showing care and conscientiousness in one's work or duties."}}]"""

VOCAB_TEST_SYSTEM_PROMPT = """\
You are an SSC CGL Exam Setter.
Create a Mock Test JSON based on these vocabulary words.
Generate exactly {count} questions (1 question for each word provided).
Questions should test Synonyms, Antonyms, or Meanings.

Format: Strictly a JSON Object with a "questions" array.
Each question object:
- id (number)
- question_en (String)
- options_en (Array of 4 strings)
- correctIndex (0-3)
- explanation_en (String)

Return ONLY valid JSON."""

ANALYSIS_SYSTEM_PROMPT = (
    'You are "The Sergeant", a strict AI analyst. Analyze: {context}. '
    "Be brutal but encouraging."
)

FILE_MARKER = "[FILE_UPLOADED_BY_USER"


def plan_system_prompt(weak_areas: str, target_hours: int = 7) -> str:
    return PLAN_SYSTEM_PROMPT.format(weak_areas=weak_areas, target_hours=target_hours)


def plan_user_prompt(day: date | None = None) -> str:
    day = day or date.today()
    return f"Generate today's plan. Date: {day.strftime('%d/%m/%Y')}. Make it hard."


def mock_test_system_prompt(count: int = 10) -> str:
    return MOCK_TEST_SYSTEM_PROMPT.format(count=count)


def material_test_prompt(title: str, content: str, instruction: str = "", limit: int = 20000) -> str:
    """Build the context prompt for a material-based mock test.

    File uploads are stored as a placeholder marker only, so the model is told
    to work from the title instead of the content.
    """
    if FILE_MARKER in content:
        prompt = (
            f'The user uploaded a file named "{title}". Since I cannot read local files '
            "directly, assume the content matches the title. Generate a relevant, tough "
            f'SSC CGL level mock test based on the topic implied by the filename "{title}".'
        )
    else:
        prompt = (
            "Analyze the ENTIRE text provided below and create a comprehensive mock test. "
            "Do not limit questions to the beginning. Ensure questions cover the start, "
            f"middle, and end of the content.\n\nTitle: {title}\n\nFull Content:\n{content[:limit]}"
        )
    if instruction:
        prompt += (
            f"\n\nIMPORTANT USER INSTRUCTION: {instruction}\n"
            "Follow this instruction strictly while generating questions."
        )
    return prompt


def vocab_system_prompt(count: int = 20) -> str:
    return VOCAB_SYSTEM_PROMPT.format(count=count)


def vocab_user_prompt(count: int = 20) -> str:
    return f"Give me {count} new words."


def vocab_test_system_prompt(count: int) -> str:
    return VOCAB_TEST_SYSTEM_PROMPT.format(count=count)


def analysis_system_prompt(context: dict) -> str:
    return ANALYSIS_SYSTEM_PROMPT.format(context=json.dumps(context, ensure_ascii=False))
