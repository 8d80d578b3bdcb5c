"""
Screen navigation for a trivia game.
"""
import logging
from typing import Callable, Dict, FrozenSet, List

from .models import Screen

logger = logging.getLogger(__name__)

NavigationListener = Callable[[Screen, Screen], None]

TRANSITIONS: Dict[Screen, FrozenSet[Screen]] = {
    Screen.MENU: frozenset({Screen.GAME, Screen.SETTINGS}),
    Screen.GAME: frozenset({Screen.RESULT}),
    Screen.RESULT: frozenset({Screen.MENU}),
    Screen.SETTINGS: frozenset({Screen.MENU}),
}


class InvalidTransitionError(Exception):
    """Raised when a screen change is not in the transition table."""

    def __init__(self, current: Screen, target: Screen):
        super().__init__(f"Cannot navigate from {current.value} to {target.value}")
        self.current = current
        self.target = target


class NavigationController:
    """Finite-state controller for Menu, Game, Result and Settings screens."""

    def __init__(self, initial: Screen = Screen.MENU):
        self._current = initial
        self._listeners: List[NavigationListener] = []

    @property
    def current(self) -> Screen:
        return self._current

    def can_go_to(self, target: Screen) -> bool:
        return target in TRANSITIONS[self._current]

    def go_to(self, target: Screen) -> Screen:
        """
        Move to another screen.

        Args:
            target: Screen to show next

        Returns:
            The previous screen

        Raises:
            InvalidTransitionError: If the transition is not allowed
        """
        if not self.can_go_to(target):
            raise InvalidTransitionError(self._current, target)

        previous = self._current
        self._current = target
        logger.debug(f"Screen transition {previous.value} -> {target.value}")

        for listener in list(self._listeners):
            listener(previous, target)
        return previous

    def add_listener(self, listener: NavigationListener) -> None:
        self._listeners.append(listener)
