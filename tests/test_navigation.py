"""
Unit tests for screen navigation.
"""
import unittest
from unittest.mock import Mock

from trivia.models import Screen
from trivia.navigation import InvalidTransitionError, NavigationController


class TestNavigationController(unittest.TestCase):
    """Test cases for the screen transition table."""

    def setUp(self):
        self.navigation = NavigationController()

    def test_starts_on_menu(self):
        self.assertEqual(self.navigation.current, Screen.MENU)

    def test_full_game_loop(self):
        self.navigation.go_to(Screen.GAME)
        self.navigation.go_to(Screen.RESULT)
        self.navigation.go_to(Screen.MENU)
        self.navigation.go_to(Screen.SETTINGS)
        self.navigation.go_to(Screen.MENU)

        self.assertEqual(self.navigation.current, Screen.MENU)

    def test_go_to_returns_previous_screen(self):
        self.assertEqual(self.navigation.go_to(Screen.SETTINGS), Screen.MENU)

    def test_illegal_transitions(self):
        illegal = [
            (Screen.MENU, Screen.RESULT),
            (Screen.MENU, Screen.MENU),
            (Screen.GAME, Screen.MENU),
            (Screen.GAME, Screen.SETTINGS),
            (Screen.RESULT, Screen.GAME),
            (Screen.SETTINGS, Screen.GAME),
        ]
        for start, target in illegal:
            with self.subTest(start=start, target=target):
                navigation = NavigationController(start)
                self.assertFalse(navigation.can_go_to(target))
                with self.assertRaises(InvalidTransitionError) as context:
                    navigation.go_to(target)
                self.assertEqual(context.exception.current, start)
                self.assertEqual(context.exception.target, target)
                self.assertEqual(navigation.current, start)

    def test_error_message(self):
        with self.assertRaises(InvalidTransitionError) as context:
            self.navigation.go_to(Screen.RESULT)
        self.assertEqual(str(context.exception), "Cannot navigate from Menu to Result")

    def test_listeners_receive_transitions(self):
        listener = Mock()
        self.navigation.add_listener(listener)

        self.navigation.go_to(Screen.GAME)
        self.navigation.go_to(Screen.RESULT)

        self.assertEqual(listener.call_count, 2)
        listener.assert_called_with(Screen.GAME, Screen.RESULT)

    def test_listener_not_called_on_illegal_transition(self):
        listener = Mock()
        self.navigation.add_listener(listener)

        with self.assertRaises(InvalidTransitionError):
            self.navigation.go_to(Screen.RESULT)
        listener.assert_not_called()


if __name__ == '__main__':
    unittest.main()
