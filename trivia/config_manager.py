"""
Configuration manager for trivia game defaults and settings input.
"""
import logging
from typing import Any, Dict, Optional

from .models import Difficulty, GameSettings


class ConfigManager:
    """Manages default game settings and clamps settings-screen input."""

    # Default configuration values
    DEFAULT_DIFFICULTY = Difficulty.EASY
    DEFAULT_ROUNDS = 15
    DEFAULT_TIME_PER_ROUND = 30

    # Validation limits
    ROUND_CHOICES = (5, 10, 15)
    MIN_TIME_PER_ROUND = 10
    MAX_TIME_PER_ROUND = 60

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._default_settings = GameSettings(
            self.DEFAULT_DIFFICULTY,
            self.DEFAULT_ROUNDS,
            self.DEFAULT_TIME_PER_ROUND
        )

    def get_default_settings(self) -> GameSettings:
        """
        Get the settings new games start with.

        Returns:
            A fresh GameSettings copy
        """
        return GameSettings(
            difficulty=self._default_settings.difficulty,
            rounds=self._default_settings.rounds,
            time_per_round=self._default_settings.time_per_round
        )

    def clamp_rounds(self, rounds: int) -> int:
        """Map a round count to the nearest allowed choice."""
        return min(self.ROUND_CHOICES, key=lambda choice: (abs(choice - rounds), choice))

    def clamp_time_per_round(self, seconds: int) -> int:
        return max(self.MIN_TIME_PER_ROUND, min(self.MAX_TIME_PER_ROUND, seconds))

    def parse_rounds(self, value: Any, fallback: int) -> int:
        """
        Parse a round count typed or picked on the settings screen.

        Args:
            value: Raw input, usually a string
            fallback: Value to keep when the input is not a number

        Returns:
            The clamped round count
        """
        try:
            rounds = int(value)
        except (TypeError, ValueError):
            self.logger.warning(f"Ignoring non-numeric rounds input {value!r}, keeping {fallback}")
            return fallback
        return self.clamp_rounds(rounds)

    def normalize_difficulty(self, value: Any):
        """
        Convert a difficulty name to its enum member.

        Unrecognized values are passed through; the engine falls back to the Easy bank for them.
        """
        level = Difficulty.from_value(value)
        if level is None:
            self.logger.warning(f"Unrecognized difficulty {value!r}, Easy questions will be used")
            return value
        return level

    def set_default_difficulty(self, difficulty: Any) -> Dict[str, Any]:
        """
        Set the difficulty new games start with.

        Args:
            difficulty: Difficulty name or member

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        level = Difficulty.from_value(difficulty)
        if level is None:
            error_msg = f"Unknown difficulty: {difficulty!r}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Unknown difficulty. Choose one of: {', '.join(d.value for d in Difficulty)}"
            }

        self._default_settings.difficulty = level
        self.logger.info(f"Default difficulty set to {level.value}")
        return {
            'success': True,
            'message': f"Default difficulty set to {level.value}",
            'user_message': f"✅ Difficulty set to {level.value}"
        }

    def set_default_rounds(self, rounds: Any) -> Dict[str, Any]:
        """
        Set the round count new games start with.

        Args:
            rounds: Number of rounds; clamped to the nearest allowed choice

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(rounds, bool) or not isinstance(rounds, int):
            error_msg = f"Rounds must be an integer, got {type(rounds).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(rounds).__name__}"
            }

        clamped = self.clamp_rounds(rounds)
        self._default_settings.rounds = clamped
        self.logger.info(f"Default rounds set to {clamped}")
        return {
            'success': True,
            'message': f"Default rounds set to {clamped}",
            'user_message': f"✅ Rounds set to {clamped}"
        }

    def set_default_time_per_round(self, seconds: Any) -> Dict[str, Any]:
        """
        Set the time per round new games start with.

        Args:
            seconds: Seconds per round; clamped to the allowed range

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if isinstance(seconds, bool) or not isinstance(seconds, int):
            error_msg = f"Time per round must be an integer, got {type(seconds).__name__}"
            self.logger.error(error_msg)
            return {
                'success': False,
                'error': error_msg,
                'user_message': f"❌ Invalid input: Expected a number, got {type(seconds).__name__}"
            }

        clamped = self.clamp_time_per_round(seconds)
        self._default_settings.time_per_round = clamped
        self.logger.info(f"Default time per round set to {clamped} seconds")
        return {
            'success': True,
            'message': f"Default time per round set to {clamped} seconds",
            'user_message': f"✅ Timer set to {clamped} seconds"
        }

    def apply_config(self, config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Apply the 'game' section of a configuration dictionary.

        Invalid entries are logged and skipped; defaults stay in place for them.

        Returns:
            Dictionary with success status and the list of errors met
        """
        game_config = (config or {}).get('game', {})
        errors = []

        setters = (
            ('default_difficulty', self.set_default_difficulty),
            ('default_rounds', self.set_default_rounds),
            ('default_time_per_round', self.set_default_time_per_round),
        )
        for key, setter in setters:
            if key not in game_config:
                continue
            result = setter(game_config[key])
            if not result['success']:
                errors.append(f"{key}: {result['error']}")

        if errors:
            self.logger.warning(f"Configuration applied with {len(errors)} error(s)")
        else:
            self.logger.info("Configuration applied successfully")

        return {
            'success': not errors,
            'errors': errors,
            'message': self.get_settings_summary()
        }

    def get_settings_summary(self, settings: Optional[GameSettings] = None) -> str:
        """
        Get a human-readable summary of settings.

        Args:
            settings: Settings to describe; the defaults when omitted
        """
        settings = settings or self._default_settings
        difficulty = settings.difficulty
        if isinstance(difficulty, Difficulty):
            difficulty = difficulty.value
        return f"Difficulty: {difficulty} | Rounds: {settings.rounds} | Timer: {settings.time_per_round}s"
