"""
Unit tests for the QuizEngine class.
"""
import unittest
from unittest.mock import Mock

from trivia.models import Difficulty, GameSettings
from trivia.question_bank import EASY_QUESTIONS, HARD_QUESTIONS
from trivia.quiz_engine import QuizEngine
from tests.test_fixtures import TestFixtures


class TestQuizEngineState(unittest.TestCase):
    """Test cases for initial state, reset and settings."""

    def test_default_settings(self):
        engine = QuizEngine()

        self.assertEqual(engine.settings, GameSettings(Difficulty.EASY, 15, 30))
        self.assertEqual(engine.score, 0)
        self.assertEqual(engine.current_question_index, 0)
        self.assertEqual(engine.time_left, 30)
        self.assertFalse(engine.is_game_over)

    def test_reset_game(self):
        engine = TestFixtures.create_engine()
        engine.answer_question("Option 1")
        engine.answer_question("Option 1")
        engine.time_left = 3

        engine.reset_game()

        self.assertEqual(engine.score, 0)
        self.assertEqual(engine.current_question_index, 0)
        self.assertEqual(engine.time_left, engine.settings.time_per_round)

    def test_update_settings_resets_game(self):
        engine = QuizEngine()
        engine.answer_question("Option 1")

        engine.update_settings("Hard", 5, 20)

        self.assertEqual(engine.settings.difficulty, "Hard")
        self.assertEqual(engine.settings.rounds, 5)
        self.assertEqual(engine.time_left, 20)
        self.assertEqual(engine.score, 0)
        self.assertEqual(engine.current_question_index, 0)

    def test_update_settings_does_not_validate(self):
        engine = QuizEngine()
        engine.update_settings("Nightmare", 7, 3)

        self.assertEqual(engine.settings.rounds, 7)
        self.assertEqual(engine.time_left, 3)
        self.assertIs(engine.questions, EASY_QUESTIONS)

    def test_questions_follow_difficulty(self):
        engine = TestFixtures.create_engine(difficulty=Difficulty.HARD)
        self.assertIs(engine.questions, HARD_QUESTIONS)

    def test_current_question(self):
        engine = TestFixtures.create_engine(rounds=2)
        self.assertEqual(engine.current_question.text, "Easy Question #0")

        engine.answer_question("Option 2")
        self.assertEqual(engine.current_question.text, "Easy Question #1")

        engine.answer_question("Option 2")
        self.assertIsNone(engine.current_question)


class TestAnswerQuestion(unittest.TestCase):
    """Test cases for answering and round advancement."""

    def setUp(self):
        self.engine = TestFixtures.create_engine(rounds=5, time_per_round=10)

    def test_correct_answer_before_last_round(self):
        self.engine.time_left = 4

        result = self.engine.answer_question("Option 1")

        self.assertTrue(result)
        self.assertEqual(self.engine.score, 1)
        self.assertEqual(self.engine.current_question_index, 1)
        self.assertEqual(self.engine.time_left, 10)
        self.assertFalse(self.engine.is_game_over)

    def test_wrong_answer_before_last_round(self):
        result = self.engine.answer_question("Option 4")

        self.assertFalse(result)
        self.assertEqual(self.engine.score, 0)
        self.assertEqual(self.engine.current_question_index, 1)

    def test_wrong_answer_on_last_round_ends_game(self):
        self.engine.current_question_index = 4

        self.engine.answer_question("Option 3")

        self.assertEqual(self.engine.score, 0)
        self.assertEqual(self.engine.time_left, 0)
        self.assertEqual(self.engine.current_question_index, 4)
        self.assertTrue(self.engine.is_game_over)

    def test_answer_match_is_exact(self):
        self.assertFalse(self.engine.answer_question("option 1"))
        self.assertFalse(self.engine.answer_question("Option 1 "))
        self.assertEqual(self.engine.score, 0)

    def test_five_correct_answers_in_a_row(self):
        """Easy, 5 rounds, 10s: answering correctly every round scores 5 and ends the game."""
        engine = QuizEngine()
        engine.update_settings(Difficulty.EASY, 5, 10)

        for _ in range(5):
            engine.answer_question(engine.questions[0].correct_answer)

        self.assertEqual(engine.score, 5)
        self.assertTrue(engine.is_game_over)

    def test_answer_after_game_over_is_ignored(self):
        self.engine.current_question_index = 4
        self.engine.answer_question("Option 1")

        result = self.engine.answer_question("Option 1")

        self.assertFalse(result)
        self.assertEqual(self.engine.score, 1)
        self.assertEqual(self.engine.current_question_index, 4)

    def test_is_game_over_when_index_past_rounds(self):
        self.engine.current_question_index = 5
        self.assertTrue(self.engine.is_game_over)


class TestTick(unittest.TestCase):
    """Test cases for the countdown."""

    def setUp(self):
        self.engine = TestFixtures.create_engine(rounds=2, time_per_round=3)

    def test_tick_decrements_time(self):
        self.assertTrue(self.engine.tick())
        self.assertEqual(self.engine.time_left, 2)
        self.assertEqual(self.engine.current_question_index, 0)

    def test_time_running_out_advances_round(self):
        self.engine.tick()
        self.engine.tick()
        self.assertTrue(self.engine.tick())

        self.assertEqual(self.engine.current_question_index, 1)
        self.assertEqual(self.engine.time_left, 3)
        self.assertEqual(self.engine.score, 0)

    def test_time_running_out_on_last_round_ends_game(self):
        on_game_end = Mock()
        self.engine.current_question_index = 1
        self.engine.time_left = 1

        self.assertFalse(self.engine.tick(on_game_end))

        self.assertTrue(self.engine.is_game_over)
        self.assertEqual(self.engine.time_left, 0)
        on_game_end.assert_called_once_with()

    def test_game_end_callback_runs_before_listeners(self):
        calls = []
        self.engine.subscribe(lambda engine: calls.append(("notify", engine.is_game_over)))
        self.engine.current_question_index = 1
        self.engine.time_left = 1

        self.engine.tick(lambda: calls.append(("end", self.engine.is_game_over)))

        self.assertEqual(calls, [("end", True), ("notify", True)])

    def test_tick_after_game_over_does_nothing(self):
        on_game_end = Mock()
        self.engine.current_question_index = 1
        self.engine.answer_question("Option 1")

        self.assertFalse(self.engine.tick(on_game_end))

        self.assertEqual(self.engine.time_left, 0)
        on_game_end.assert_not_called()

    def test_tick_and_answer_at_boundary_advance_once(self):
        """A timeout followed by a late answer moves exactly one round each."""
        self.engine.time_left = 1

        self.engine.tick()
        self.assertEqual(self.engine.current_question_index, 1)

        self.engine.answer_question("Option 1")
        self.assertEqual(self.engine.current_question_index, 1)
        self.assertTrue(self.engine.is_game_over)
        self.assertEqual(self.engine.score, 1)

    def test_time_left_stays_in_range(self):
        for _ in range(10):
            self.engine.tick()
            self.assertGreaterEqual(self.engine.time_left, 0)
            self.assertLessEqual(self.engine.time_left, self.engine.settings.time_per_round)


class TestEngineListeners(unittest.TestCase):
    """Test cases for change notifications."""

    def setUp(self):
        self.engine = TestFixtures.create_engine()
        self.listener = Mock()

    def test_listener_notified_on_mutations(self):
        self.engine.subscribe(self.listener)

        self.engine.answer_question("Option 1")
        self.engine.tick()
        self.engine.reset_game()
        self.engine.update_settings(Difficulty.NORMAL, 10, 15)

        self.assertEqual(self.listener.call_count, 4)
        self.listener.assert_called_with(self.engine)

    def test_unsubscribe_callable(self):
        unsubscribe = self.engine.subscribe(self.listener)
        unsubscribe()

        self.engine.answer_question("Option 1")
        self.listener.assert_not_called()

    def test_unsubscribe_unknown_listener_is_ignored(self):
        self.engine.unsubscribe(self.listener)

    def test_failing_listener_does_not_break_engine(self):
        failing = Mock(side_effect=RuntimeError("boom"))
        self.engine.subscribe(failing)
        self.engine.subscribe(self.listener)

        with self.assertLogs('trivia.quiz_engine', level='ERROR'):
            self.assertTrue(self.engine.answer_question("Option 1"))

        self.assertEqual(self.engine.score, 1)
        self.listener.assert_called_once_with(self.engine)

    def test_ignored_answer_does_not_notify(self):
        self.engine.current_question_index = 4
        self.engine.answer_question("Option 1")
        self.engine.subscribe(self.listener)

        self.engine.answer_question("Option 1")
        self.listener.assert_not_called()


if __name__ == '__main__':
    unittest.main()
