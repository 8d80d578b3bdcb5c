"""
Quiz engine core logic for the trivia game.
Handles scoring, round progression, the countdown and question selection.
"""
import asyncio
import logging
import time
from typing import Callable, List, Optional, Tuple

from .models import GameSettings, Question
from .question_bank import get_question_bank

# Set up logger for engine and timer operations
logger = logging.getLogger(__name__)

EngineListener = Callable[["QuizEngine"], None]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_start(game_id: str, interval: float) -> None:
        """Log timer start event with structured data."""
        logger.info(
            "Timer lifecycle: STARTED",
            extra={
                'event_type': 'timer_start',
                'game_id': game_id,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_tick(game_id: str, tick_count: int) -> None:
        """Log timer tick at debug level."""
        logger.debug(
            f"Timer lifecycle: TICK {tick_count}",
            extra={
                'event_type': 'timer_tick',
                'game_id': game_id,
                'tick_count': tick_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_completion(game_id: str, completion_type: str, tick_count: int) -> None:
        """Log timer completion event."""
        logger.info(
            f"Timer lifecycle: COMPLETED ({completion_type})",
            extra={
                'event_type': 'timer_completion',
                'game_id': game_id,
                'completion_type': completion_type,
                'tick_count': tick_count,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(game_id: str, from_state: str, to_state: str, reason: str = None) -> None:
        """Log timer state transitions."""
        logger.debug(
            f"Timer lifecycle: STATE_TRANSITION {from_state} -> {to_state}",
            extra={
                'event_type': 'timer_state_transition',
                'game_id': game_id,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(game_id: str, error_type: str, error_message: str, operation: str) -> None:
        """Log timer errors with context."""
        logger.error(
            f"Timer lifecycle: ERROR in {operation}",
            extra={
                'event_type': 'timer_error',
                'game_id': game_id,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class RoundTimer:
    """Cancellable once-per-second ticker for the game screen."""

    def __init__(self, game_id: str = None, interval: float = 1.0):
        """Initialize the timer."""
        self._task: Optional[asyncio.Task] = None
        self._game_id = game_id
        self._interval = interval
        self._tick_count = 0

    def start(self, tick_callback: Callable[[], bool]) -> asyncio.Task:
        """
        Start ticking on the running event loop.

        Args:
            tick_callback: Called once per interval; returning False stops the timer

        Returns:
            The task driving the countdown
        """
        if self.is_running:
            TimerLifecycleLogger.log_timer_state_transition(
                self._game_id,
                "running",
                "restarting",
                "start requested while running"
            )
            self.cancel()

        self._tick_count = 0
        self._task = asyncio.get_running_loop().create_task(self._run(tick_callback))
        TimerLifecycleLogger.log_timer_start(self._game_id, self._interval)
        return self._task

    async def _run(self, tick_callback: Callable[[], bool]) -> None:
        # A run stays live only while it is the timer's current task.
        task = asyncio.current_task()
        try:
            while self._task is task:
                await asyncio.sleep(self._interval)
                if self._task is not task:
                    break
                self._tick_count += 1
                TimerLifecycleLogger.log_timer_tick(self._game_id, self._tick_count)
                if not tick_callback():
                    TimerLifecycleLogger.log_timer_completion(
                        self._game_id,
                        "game_over",
                        self._tick_count
                    )
                    return

            TimerLifecycleLogger.log_timer_completion(self._game_id, "cancelled", self._tick_count)

        except asyncio.CancelledError:
            TimerLifecycleLogger.log_timer_completion(
                self._game_id,
                "asyncio_cancelled",
                self._tick_count
            )
            raise
        except Exception as e:
            TimerLifecycleLogger.log_timer_error(
                self._game_id,
                type(e).__name__,
                str(e),
                "tick"
            )
            raise

    def cancel(self) -> None:
        """Stop the timer. Safe to call when it is not running."""
        task, self._task = self._task, None
        if task is None or task.done():
            return

        if task is _current_task():
            # Cancelled from inside a tick; the loop exits on its own.
            TimerLifecycleLogger.log_timer_state_transition(
                self._game_id,
                "running",
                "stopping",
                "cancel requested from tick"
            )
        else:
            task.cancel()
            TimerLifecycleLogger.log_timer_state_transition(
                self._game_id,
                "running",
                "cancelled",
                "task cancelled"
            )

    @property
    def is_running(self) -> bool:
        """Check if a ticking task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        """Number of ticks delivered since the last start."""
        return self._tick_count


class QuizEngine:
    """Game state machine: settings, score, current round and time left."""

    def __init__(self, settings: Optional[GameSettings] = None):
        """Initialize the engine with default or given settings."""
        self.settings = settings or GameSettings()
        self.score = 0
        self.current_question_index = 0
        self.time_left = self.settings.time_per_round
        self._listeners: List[EngineListener] = []

    @property
    def questions(self) -> Tuple[Question, ...]:
        """Question bank for the configured difficulty."""
        return get_question_bank(self.settings.difficulty)

    @property
    def is_game_over(self) -> bool:
        return self.current_question_index >= self.settings.rounds or self.time_left <= 0

    @property
    def current_question(self) -> Optional[Question]:
        """The question being asked, or None once the game is over."""
        if self.is_game_over:
            return None
        questions = self.questions
        if self.current_question_index >= len(questions):
            return None
        return questions[self.current_question_index]

    def answer_question(self, answer: str) -> bool:
        """
        Score an answer to the current question and move to the next round.

        Args:
            answer: The chosen option text

        Returns:
            True if the answer was correct
        """
        if self.is_game_over:
            logger.warning(
                f"Ignoring answer {answer!r}: game is over "
                f"(round {self.current_question_index + 1}/{self.settings.rounds}, time left {self.time_left})"
            )
            return False

        question = self.questions[self.current_question_index]
        is_correct = answer == question.correct_answer
        if is_correct:
            self.score += 1

        logger.debug(
            f"Round {self.current_question_index + 1}: answered {answer!r}, "
            f"{'correct' if is_correct else 'wrong'}, score {self.score}"
        )
        self._advance_round()
        self._notify()
        return is_correct

    def tick(self, on_game_end: Optional[Callable[[], None]] = None) -> bool:
        """
        Consume one second of the countdown.

        When the time runs out the round advances exactly as an answer would.

        Args:
            on_game_end: Called if this tick ended the game

        Returns:
            True while the game continues
        """
        if self.is_game_over:
            return False

        self.time_left -= 1
        if self.time_left <= 0:
            logger.info(f"Time ran out on round {self.current_question_index + 1}")
            self._advance_round()

        # Listeners are notified after on_game_end so they see the finished game.
        game_over = self.is_game_over
        if game_over and on_game_end is not None:
            on_game_end()

        self._notify()
        return not game_over

    def update_settings(self, difficulty, rounds: int, time_per_round: int) -> None:
        """Replace the settings and start over."""
        self.settings = GameSettings(difficulty, rounds, time_per_round)
        logger.info(
            f"Settings updated: difficulty={difficulty}, rounds={rounds}, "
            f"time_per_round={time_per_round}s"
        )
        self.reset_game()

    def reset_game(self) -> None:
        self.score = 0
        self.current_question_index = 0
        self.time_left = self.settings.time_per_round
        self._notify()

    def _advance_round(self) -> None:
        # Single place where rounds move; shared by answers and the countdown.
        if self.current_question_index < self.settings.rounds - 1:
            self.current_question_index += 1
            self.time_left = self.settings.time_per_round
        else:
            self.time_left = 0
            logger.info(f"Game over with score {self.score}/{self.settings.rounds}")

    def subscribe(self, listener: EngineListener) -> Callable[[], None]:
        """
        Register a listener called with the engine after every change.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: EngineListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.error(f"Engine listener {listener!r} failed: {e}", exc_info=True)
