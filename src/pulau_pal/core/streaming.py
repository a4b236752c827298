"""
Typing reveal for assistant messages.

A finished response is disclosed one character at a time. Each step sleeps
through the scheduler, then checks the cancellation flag before committing,
so a stop request overshoots by at most the step already sleeping.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..models.schemas import MAX_ACTION_BUTTONS, MAX_SUGGESTED_REPLIES, ActionButton, Message

logger = logging.getLogger(__name__)

PAUSE_MULTIPLIERS = {
    ".": 3,
    ",": 2,
    "!": 4,
    "?": 4,
}


def reveal_delay(previous_char: str, base_delay: float) -> float:
    """Delay before the next character, set by the character just revealed"""
    return base_delay * PAUSE_MULTIPLIERS.get(previous_char, 1)


class Scheduler(ABC):
    @abstractmethod
    async def sleep(self, delay: float) -> None:
        ...


class AsyncioScheduler(Scheduler):
    async def sleep(self, delay: float) -> None:
        await asyncio.sleep(delay)


class MessageStream:
    """Reveal state for one assistant message: text, revealed_count, cancelled"""

    def __init__(self, message: Message, text: str, scheduler: Scheduler,
                 base_delay: float = 0.012, initial_delay: float = 0.5,
                 suggested_replies: Optional[List[str]] = None,
                 action_buttons: Optional[List[ActionButton]] = None,
                 on_finish: Optional[Callable[["MessageStream"], None]] = None):
        self.message = message
        self.text = text or ""
        self.scheduler = scheduler
        self.base_delay = base_delay
        self.initial_delay = initial_delay
        self.suggested_replies = suggested_replies
        self.action_buttons = action_buttons
        self.on_finish = on_finish

        self.revealed_count = 0
        self.cancelled = False
        self.finished = False
        self._task: Optional[asyncio.Task] = None

        self.message.content = ""
        self.message.isAnimating = True
        self.message.canStop = True

    @property
    def is_active(self) -> bool:
        return not self.finished

    def start(self) -> Optional[asyncio.Task]:
        """Schedule the reveal on the running event loop. Empty text completes at once."""
        if not self.text and not self.finished:
            self._complete()
        if self._task is None and not self.finished:
            self._task = asyncio.ensure_future(self.run())
        return self._task

    async def wait(self) -> None:
        if self._task is not None:
            await self._task

    def cancel(self) -> None:
        """Freeze the message at its committed prefix"""
        if self.finished:
            return
        self.cancelled = True
        logger.debug(f"Stream cancelled after {self.revealed_count}/{len(self.text)} characters")
        if self.action_buttons:
            self.message.actionButtons = list(self.action_buttons[:MAX_ACTION_BUTTONS])
        self._finish()

    async def run(self) -> None:
        try:
            for i in range(len(self.text)):
                delay = self.initial_delay if i == 0 else reveal_delay(self.text[i - 1], self.base_delay)
                await self.scheduler.sleep(delay)
                if self.cancelled:
                    return
                self.revealed_count = i + 1
                self.message.content = self.text[:self.revealed_count]

            if not self.cancelled:
                self._complete()
        finally:
            if not self.finished:
                # interrupted by task cancellation
                self._finish()

    def _complete(self) -> None:
        if self.suggested_replies:
            self.message.suggestedReplies = list(self.suggested_replies[:MAX_SUGGESTED_REPLIES])
        if self.action_buttons:
            self.message.actionButtons = list(self.action_buttons[:MAX_ACTION_BUTTONS])
        self._finish()

    def _finish(self) -> None:
        self.finished = True
        self.message.isAnimating = False
        self.message.canStop = False
        if self.on_finish is not None:
            self.on_finish(self)
