"""
Fixed question banks, one per difficulty.
"""
from typing import Dict, Tuple

from .models import Difficulty, Question

BANK_SIZE = 15
OPTIONS = ("Option 1", "Option 2", "Option 3", "Option 4")


def _build_bank(label: str, correct_answer: str) -> Tuple[Question, ...]:
    return tuple(
        Question(f"{label} Question #{number}", OPTIONS, correct_answer)
        for number in range(BANK_SIZE)
    )


EASY_QUESTIONS = _build_bank("Easy", "Option 1")
NORMAL_QUESTIONS = _build_bank("Normal", "Option 2")
HARD_QUESTIONS = _build_bank("Hard", "Option 3")

QUESTION_BANKS: Dict[Difficulty, Tuple[Question, ...]] = {
    Difficulty.EASY: EASY_QUESTIONS,
    Difficulty.NORMAL: NORMAL_QUESTIONS,
    Difficulty.HARD: HARD_QUESTIONS,
}


def get_question_bank(difficulty) -> Tuple[Question, ...]:
    """
    Select the question bank for a difficulty.

    Args:
        difficulty: A Difficulty member or its string value

    Returns:
        The bank for that difficulty, or the Easy bank when unrecognized
    """
    level = Difficulty.from_value(difficulty)
    if level is None:
        return EASY_QUESTIONS
    return QUESTION_BANKS[level]
