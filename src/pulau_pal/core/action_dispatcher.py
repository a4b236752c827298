import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.schemas import (
    ActionButton, BookAction, ExternalAction, FilterAction, NavigateAction,
    NavigationCommand, ViewAction,
)

logger = logging.getLogger(__name__)

BOOKING_ROUTE = "/book-now"
DETAIL_ROUTE = "/homestay"
LISTING_ROUTE = "/accommodation"


class Navigator(ABC):
    """Performs navigation on behalf of the chat window"""

    @abstractmethod
    def navigate(self, target: str) -> NavigationCommand:
        ...

    @abstractmethod
    def open_external(self, url: str) -> NavigationCommand:
        ...


class RecordingNavigator(Navigator):
    """Queues navigation commands for the client to carry out"""

    def __init__(self):
        self.pending: List[NavigationCommand] = []

    def navigate(self, target: str) -> NavigationCommand:
        command = NavigationCommand(target=target, newContext=False)
        self.pending.append(command)
        return command

    def open_external(self, url: str) -> NavigationCommand:
        command = NavigationCommand(target=url, newContext=True)
        self.pending.append(command)
        return command

    def drain(self) -> List[NavigationCommand]:
        commands, self.pending = self.pending, []
        return commands


class ActionDispatcher:
    """Executes the side effect bound to an action button"""

    def __init__(self, navigator: Navigator):
        self.navigator = navigator

    def execute(self, button: Optional[ActionButton]) -> Optional[NavigationCommand]:
        """Navigate for a known action; anything else is a no-op"""
        if isinstance(button, BookAction):
            return self.navigator.navigate(f"{BOOKING_ROUTE}?homestay={button.data.id}")
        elif isinstance(button, ViewAction):
            return self.navigator.navigate(f"{DETAIL_ROUTE}/{button.data.id}")
        elif isinstance(button, FilterAction):
            return self.navigator.navigate(f"{LISTING_ROUTE}?{button.data.params}")
        elif isinstance(button, NavigateAction):
            return self.navigator.navigate(button.data.path)
        elif isinstance(button, ExternalAction):
            return self.navigator.open_external(button.data.url)

        logger.debug(f"Ignoring unsupported action button: {button!r}")
        return None
