"""
Game controller that ties the quiz engine, screen navigation and round timer together.
"""
import logging
from typing import Any, Callable, Dict, Optional

from .config_manager import ConfigManager
from .models import Difficulty, GameSettings, Screen
from .navigation import NavigationController
from .quiz_engine import EngineListener, QuizEngine, RoundTimer


class GameControllerError(Exception):
    """Base exception for game controller errors."""
    pass


class InvalidScreenError(GameControllerError):
    """Raised when an operation is not available on the current screen."""
    pass


class GameClosedError(GameControllerError):
    """Raised when a closed game is used."""
    pass


class GameController:
    """
    Runs one trivia game for one channel.

    The controller owns the round timer: it starts when the game screen is
    entered and is cancelled whenever the game screen is left.
    """

    def __init__(
        self,
        game_id: Any,
        config_manager: ConfigManager,
        settings: Optional[GameSettings] = None,
        timer: Optional[RoundTimer] = None
    ):
        """
        Initialize the game controller.

        Args:
            game_id: Identifier used in logs, usually the Discord channel id
            config_manager: Instance providing defaults and input clamping
            settings: Optional starting settings, uses configured defaults if None
            timer: Optional round timer, a one-second timer if None
        """
        self.logger = logging.getLogger(__name__)
        self.game_id = game_id
        self.config_manager = config_manager
        self.engine = QuizEngine(settings or config_manager.get_default_settings())
        self.navigation = NavigationController()
        self.timer = timer or RoundTimer(str(game_id))
        self.navigation.add_listener(self._on_screen_change)
        self._closed = False

    @property
    def screen(self) -> Screen:
        return self.navigation.current

    @property
    def closed(self) -> bool:
        """True once the game was removed from its channel."""
        return self._closed

    def subscribe(self, listener: EngineListener) -> Callable[[], None]:
        """Register for engine change notifications; returns the unsubscribe callable."""
        return self.engine.subscribe(listener)

    def start_game(self) -> Dict[str, Any]:
        """
        Leave the menu and start the first round.

        Returns:
            Dictionary with operation results and game progress
        """
        try:
            self._require_screen(Screen.MENU, "start a game")
            self.engine.reset_game()
            self.navigation.go_to(Screen.GAME)
            self.timer.start(self.tick)

            self.logger.info(
                f"Game {self.game_id} started: "
                f"{self.config_manager.get_settings_summary(self.engine.settings)}"
            )
            return {
                'success': True,
                'message': "Game started",
                'progress': self.get_progress()
            }

        except GameControllerError as e:
            return self._handle_error(e, "start_game")

    def answer(self, option: str) -> Dict[str, Any]:
        """
        Answer the current question.

        Args:
            option: The chosen option text

        Returns:
            Dictionary with correctness, whether the game ended, and game progress
        """
        try:
            self._require_screen(Screen.GAME, "answer a question")
            is_correct = self.engine.answer_question(option)
            if self.engine.is_game_over:
                self._finish_game()

            return {
                'success': True,
                'correct': is_correct,
                'game_over': self.screen == Screen.RESULT,
                'progress': self.get_progress()
            }

        except GameControllerError as e:
            return self._handle_error(e, "answer")

    def tick(self) -> bool:
        """
        Timer callback: one second of the current round.

        Returns:
            True while the timer should keep running
        """
        if self._closed or self.screen != Screen.GAME:
            return False
        return self.engine.tick(on_game_end=self._finish_game)

    def open_settings(self) -> Dict[str, Any]:
        try:
            self._require_screen(Screen.MENU, "open settings")
            self.navigation.go_to(Screen.SETTINGS)
            return {
                'success': True,
                'message': "Settings opened",
                'progress': self.get_progress()
            }
        except GameControllerError as e:
            return self._handle_error(e, "open_settings")

    def save_settings(self, difficulty: Any, rounds: Any, time_per_round: Any) -> Dict[str, Any]:
        """
        Apply settings-screen input and return to the menu.

        Rounds are clamped to the allowed choices and fall back to the
        current value when not numeric; the time per round is clamped to
        its allowed range.

        Returns:
            Dictionary with operation results and the applied settings summary
        """
        try:
            self._require_screen(Screen.SETTINGS, "save settings")
            current = self.engine.settings

            level = self.config_manager.normalize_difficulty(difficulty)
            parsed_rounds = self.config_manager.parse_rounds(rounds, current.rounds)
            try:
                seconds = self.config_manager.clamp_time_per_round(int(time_per_round))
            except (TypeError, ValueError):
                self.logger.warning(
                    f"Ignoring non-numeric time per round {time_per_round!r}, keeping {current.time_per_round}"
                )
                seconds = current.time_per_round

            self.engine.update_settings(level, parsed_rounds, seconds)
            self.navigation.go_to(Screen.MENU)

            summary = self.config_manager.get_settings_summary(self.engine.settings)
            return {
                'success': True,
                'message': f"Settings saved: {summary}",
                'user_message': f"✅ {summary}",
                'progress': self.get_progress()
            }

        except GameControllerError as e:
            return self._handle_error(e, "save_settings")

    def back_to_menu(self) -> Dict[str, Any]:
        """
        Return to the menu from the result or settings screen.

        Leaving the result screen resets the game.
        """
        try:
            self._require_open("go back to the menu")
            if self.screen == Screen.RESULT:
                self.engine.reset_game()
            elif self.screen != Screen.SETTINGS:
                raise InvalidScreenError(f"Cannot go back to the menu from the {self.screen.value} screen")

            self.navigation.go_to(Screen.MENU)
            return {
                'success': True,
                'message': "Back to menu",
                'progress': self.get_progress()
            }

        except GameControllerError as e:
            return self._handle_error(e, "back_to_menu")

    def stop(self) -> None:
        """Stop the timer and return to the menu from any screen."""
        self.timer.cancel()
        if self.screen == Screen.GAME:
            self.navigation.go_to(Screen.RESULT)
        if self.screen in (Screen.RESULT, Screen.SETTINGS):
            self.navigation.go_to(Screen.MENU)
        self.engine.reset_game()
        self.logger.info(f"Game {self.game_id} stopped")

    def close(self) -> None:
        """Stop the game for good; every later operation is refused."""
        if self._closed:
            return
        self.stop()
        self._closed = True
        self.logger.info(f"Game {self.game_id} closed")

    def get_progress(self) -> Dict[str, Any]:
        """
        Get a snapshot of the game for rendering.

        Returns:
            Dictionary with screen, score, round and timer information
        """
        engine = self.engine
        settings = engine.settings
        difficulty = settings.difficulty
        if isinstance(difficulty, Difficulty):
            difficulty = difficulty.value

        return {
            'screen': self.screen,
            'score': engine.score,
            'current_round': min(engine.current_question_index + 1, settings.rounds),
            'total_rounds': settings.rounds,
            'time_left': engine.time_left,
            'time_per_round': settings.time_per_round,
            'difficulty': difficulty,
            'game_over': engine.is_game_over,
            'question': engine.current_question
        }

    def _finish_game(self) -> None:
        if self.screen == Screen.GAME:
            self.navigation.go_to(Screen.RESULT)
            self.logger.info(
                f"Game {self.game_id} finished with score "
                f"{self.engine.score}/{self.engine.settings.rounds}"
            )

    def _on_screen_change(self, previous: Screen, current: Screen) -> None:
        if previous == Screen.GAME:
            self.timer.cancel()

    def _require_open(self, action: str) -> None:
        if self._closed:
            raise GameClosedError(
                f"Cannot {action}: this game was stopped, use /trivia to start a new one"
            )

    def _require_screen(self, screen: Screen, action: str) -> None:
        self._require_open(action)
        if self.screen != screen:
            raise InvalidScreenError(
                f"Cannot {action} on the {self.screen.value} screen"
            )

    def _handle_error(self, error: Exception, operation: str) -> Dict[str, Any]:
        self.logger.warning(f"Game {self.game_id}: {operation} failed: {error}")
        return {
            'success': False,
            'error': str(error),
            'user_message': f"❌ {error}",
            'progress': self.get_progress()
        }


class GameRegistry:
    """Keeps one GameController per channel."""

    def __init__(self, config_manager: ConfigManager):
        self.logger = logging.getLogger(__name__)
        self.config_manager = config_manager
        self._games: Dict[Any, GameController] = {}

    def get_or_create(self, channel_id: Any) -> GameController:
        game = self._games.get(channel_id)
        if game is None:
            game = GameController(channel_id, self.config_manager)
            self._games[channel_id] = game
            self.logger.info(f"Created game for channel {channel_id}")
        return game

    def get(self, channel_id: Any) -> Optional[GameController]:
        return self._games.get(channel_id)

    def remove(self, channel_id: Any) -> bool:
        """
        Close and forget the game for a channel.

        Views still attached to the removed game get an error instead of
        restarting it.

        Returns:
            True if a game existed
        """
        game = self._games.pop(channel_id, None)
        if game is None:
            return False
        game.close()
        return True

    def stop_all(self) -> int:
        """Stop every game's timer; returns how many games were stopped."""
        count = len(self._games)
        for channel_id in list(self._games):
            self.remove(channel_id)
        if count:
            self.logger.info(f"Stopped {count} game(s)")
        return count

    def __len__(self) -> int:
        return len(self._games)
