"""
Core data models for the trivia game.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class Difficulty(str, Enum):
    """Question bank difficulty levels."""
    EASY = "Easy"
    NORMAL = "Normal"
    HARD = "Hard"

    @classmethod
    def from_value(cls, value) -> Optional["Difficulty"]:
        """Return the matching member, or None for an unrecognized value."""
        try:
            return cls(value)
        except ValueError:
            return None


class Screen(Enum):
    """Screens a game can be on."""
    MENU = "Menu"
    GAME = "Game"
    RESULT = "Result"
    SETTINGS = "Settings"


@dataclass(frozen=True)
class Question:
    """A multiple-choice question with four options."""
    text: str
    options: Tuple[str, ...]
    correct_answer: str


@dataclass
class GameSettings:
    """Configuration settings for a game."""
    difficulty: Union[Difficulty, str] = Difficulty.EASY
    rounds: int = 15
    time_per_round: int = 30
