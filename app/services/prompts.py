TRIVIA_GENERATION_SYSTEM_PROMPT = """
You are a crypto historian writing multiple-choice trivia for a quiz game.
Every question must be factual, verifiable and unambiguous, with exactly one correct option.
You always answer with a JSON array and nothing else.
"""

TRIVIA_SLOT_LINE = (
    'Question {number}: About events, developments, or notable things that happened '
    '{year_phrase} the year {year} related to the category "{category}".'
)

TRIVIA_BATCH_PROMPT = """
Generate {count} different crypto trivia questions according to the following specifications:

{slot_lines}

Each question should be multiple choice with 4 options, with only one correct answer.
The question should be challenging but fair for {difficulty} difficulty level.

Format your response as a valid JSON array with the following structure:
[
  {{
    "category": "{example_category}",
    "year": {example_year},
    "question": "The question text",
    "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
    "correctAnswer": 0
  }}
]
"correctAnswer" is the index (0-3) of the correct option.
{closing_instruction}
"""

PRIMARY_CLOSING_INSTRUCTION = (
    "Make sure each question is specifically about something that happened in the "
    "specified year, not before or after."
)
SUPPLEMENTARY_CLOSING_INSTRUCTION = "Do not repeat questions you may have produced before."


def build_batch_prompt(slots, difficulty: str, supplementary: bool = False) -> str:
    """
    Build one prompt asking for a question per (category, year) slot.

    Args:
        slots: Sequence of QuestionSlot.
        difficulty: "easy", "medium" or "hard".
        supplementary: True for the shortfall request, which anchors years loosely.

    Returns:
        str: The user prompt.
    """
    year_phrase = "around" if supplementary else "specifically in"
    slot_lines = "\n".join(
        TRIVIA_SLOT_LINE.format(
            number=index + 1,
            year_phrase=year_phrase,
            year=slot.year,
            category=slot.category,
        )
        for index, slot in enumerate(slots)
    )
    first = slots[0] if slots else None
    return TRIVIA_BATCH_PROMPT.format(
        count=len(slots),
        slot_lines=slot_lines,
        difficulty=difficulty,
        example_category=first.category if first else "development",
        example_year=first.year if first else 2024,
        closing_instruction=(
            SUPPLEMENTARY_CLOSING_INSTRUCTION if supplementary else PRIMARY_CLOSING_INSTRUCTION
        ),
    )
