#!/usr/bin/env python3
"""
Conversation controller - owns one chat session

Holds the ordered message list and session config, gates sends while a turn
is loading or streaming, and hands pipeline results to the typing reveal.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from ..agents.response_pipeline import ResponsePipeline
from ..models.schemas import (
    ActionButton, GenerationResult, Message, NavigationCommand, Notice,
    SessionConfig, SessionSnapshot, parse_action_button,
)
from ..models.session_models import (
    THEME_ORDER, ConversationPhase, IntentType, LanguageType, ResponseTier, Role,
)
from ..services.knowledge_service import KnowledgeService
from ..services.page_scanner import UNSCANNABLE
from .action_dispatcher import ActionDispatcher, Navigator, RecordingNavigator
from .config import settings
from .error_handling import ErrorHandler
from .streaming import AsyncioScheduler, MessageStream, Scheduler

logger = logging.getLogger(__name__)

GREETINGS = {
    "initial": {
        "en": "🌺 Hi! I'm Pulau Pal, your Untung Jawa guide. How can I help you today?",
        "id": "🌺 Hai! Saya Pulau Pal, pemandu Untung Jawa Anda. Ada yang bisa saya bantu hari ini?",
    },
    "language": {
        "en": "🌺 Welcome back! I'm Pulau Pal, your mystical Untung Jawa Island guide. How can I help you discover our island paradise?",
        "id": "🌺 Selamat datang kembali! Saya Pulau Pal, pemandu mistis Pulau Untung Jawa. Bagaimana saya bisa membantu Anda menemukan surga pulau kami?",
    },
    "reset": {
        "en": "🌺 Fresh start! I'm Pulau Pal, ready to guide you through the magical wonders of Untung Jawa Island. What adventure shall we begin?",
        "id": "🌺 Mulai yang baru! Saya Pulau Pal, siap memandu Anda melalui keajaiban magis Pulau Untung Jawa. Petualangan apa yang akan kita mulai?",
    },
}

GREETING_REPLIES = {
    "initial": {
        "en": ["Show me homestays", "What activities are available?", "Tell me about pricing"],
        "id": ["Tunjukkan homestay", "Aktivitas apa yang tersedia?", "Berapa kisaran harganya?"],
    },
    "language": {
        "en": ["Tell me about Untung Jawa", "I'm looking for homestays", "What activities are available?"],
        "id": ["Ceritakan tentang Untung Jawa", "Saya mencari homestay", "Aktivitas apa yang tersedia?"],
    },
    "reset": {
        "en": ["Island activities", "Find homestays", "Travel tips"],
        "id": ["Aktivitas pulau", "Cari homestay", "Tips perjalanan"],
    },
}

QUICK_REPLIES = [
    {"label": "🏝️ Island Magic", "action": "Tell me about Untung Jawa's hidden gems"},
    {"label": "🏠 Mystical Stays", "action": "Show me the most magical homestays"},
    {"label": "🌊 Ocean Adventures", "action": "What ocean activities await me?"},
    {"label": "🌸 Local Secrets", "action": "Share some local secrets and traditions"},
    {"label": "☀️ Island Weather", "action": "What's the weather like in paradise?"},
    {"label": "🛥️ Journey There", "action": "How do I reach this magical island?"},
]

TRIP_PLAN_PROMPTS = [
    {"label": "🗓️ 3-Day Adventure", "action": "Help me plan a 3-day island adventure"},
    {"label": "💰 Budget Friendly", "action": "Show me budget-friendly island options"},
    {"label": "✨ Luxury Escape", "action": "I want a luxury island experience"},
]

PAGE_ANALYSIS_REPLIES = {
    "en": ["Tell me more about this", "What can I do here?", "Continue exploring"],
    "id": ["Ceritakan lebih lanjut tentang ini", "Apa yang bisa saya lakukan di sini?", "Lanjutkan menjelajah"],
}

VISIBLE_QUICK_REPLIES = 3


def greeting_message(kind: str, language: str) -> Message:
    return Message(
        role=Role.ASSISTANT,
        content=GREETINGS[kind].get(language, GREETINGS[kind]["en"]),
        suggestedReplies=list(GREETING_REPLIES[kind].get(language, GREETING_REPLIES[kind]["en"])),
    )


class ConversationController:
    """One visitor's chat session"""

    def __init__(self, pipeline: ResponsePipeline, knowledge_service: KnowledgeService,
                 scheduler: Scheduler = None, navigator: Navigator = None,
                 config: SessionConfig = None, session_id: str = None,
                 base_delay: float = None, initial_delay: float = None):
        self.session_id = session_id or uuid.uuid4().hex
        self.pipeline = pipeline
        self.knowledge_service = knowledge_service
        self.scheduler = scheduler or AsyncioScheduler()
        self.navigator = navigator or RecordingNavigator()
        self.dispatcher = ActionDispatcher(self.navigator)
        self.base_delay = settings.typing_base_delay if base_delay is None else base_delay
        self.initial_delay = settings.typing_initial_delay if initial_delay is None else initial_delay

        self.config = config or SessionConfig(
            botName=settings.BOT_NAME,
            language=LanguageType(settings.DEFAULT_LANGUAGE),
        )
        greeting = greeting_message("initial", self.language)
        self.config.greeting = greeting.content
        self.messages: List[Message] = [greeting]
        self.phase = ConversationPhase.FRESH

        self.active_stream: Optional[MessageStream] = None
        self.current_page: Optional[Tuple[str, str]] = None
        self._is_loading = False
        self._notices: List[Notice] = []
        # bumped whenever history is replaced; stale pipeline results are dropped
        self._generation = 0
        self.last_activity = datetime.now(timezone.utc)

    @property
    def language(self) -> str:
        return self.config.language.value

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_generating(self) -> bool:
        return self.active_stream is not None and self.active_stream.is_active

    @property
    def is_busy(self) -> bool:
        return self._is_loading or self.is_generating

    def touch(self) -> None:
        self.last_activity = datetime.now(timezone.utc)

    def is_expired(self, timeout_minutes: int, now: Optional[datetime] = None) -> bool:
        """Idle longer than the timeout; a session that is still answering never expires"""
        if self.is_busy:
            return False
        current_time = now or datetime.now(timezone.utc)
        return current_time - self.last_activity > timedelta(minutes=timeout_minutes)

    def _history(self) -> List[Dict[str, str]]:
        return [{"role": message.role.value, "content": message.content} for message in self.messages]

    async def send_user_message(self, text: str) -> Optional[MessageStream]:
        """Append the visitor's message and start streaming the answer"""
        if not text or not text.strip() or self.is_busy:
            return None

        history = self._history()
        self.messages.append(Message(role=Role.USER, content=text.strip()))
        self.phase = ConversationPhase.IN_PROGRESS
        return await self._respond(text.strip(), history)

    async def _respond(self, message: str, history: List[Dict[str, str]], **pipeline_kwargs) -> Optional[MessageStream]:
        language = self.language
        generation = self._generation
        self._is_loading = True
        try:
            result = await self.pipeline.respond(message, language, history, **pipeline_kwargs)
        except Exception as e:
            logger.error(f"Pipeline failed for session {self.session_id}: {e}")
            result = GenerationResult(
                text=ErrorHandler.apology(language),
                tier=ResponseTier.FALLBACK,
                notice=ErrorHandler.connection_notice(e, language),
            )
        finally:
            self._is_loading = False

        if generation != self._generation:
            logger.debug(f"Dropping answer for replaced conversation in session {self.session_id}")
            return None

        if result.notice is not None:
            self._notices.append(result.notice)
        return self._stream(result.text, result.suggestedReplies, result.actionButtons)

    def _stream(self, text: str, suggested_replies: Optional[List[str]] = None,
                action_buttons: Optional[List[ActionButton]] = None) -> MessageStream:
        message = Message(role=Role.ASSISTANT)
        self.messages.append(message)
        stream = MessageStream(
            message, text, self.scheduler,
            base_delay=self.base_delay,
            initial_delay=self.initial_delay,
            suggested_replies=suggested_replies,
            action_buttons=action_buttons,
            on_finish=self._on_stream_finished,
        )
        self.active_stream = stream
        stream.start()
        return stream

    def _on_stream_finished(self, stream: MessageStream) -> None:
        if self.active_stream is stream:
            self.active_stream = None

    def stop_generating(self) -> None:
        if self.active_stream is not None:
            self.active_stream.cancel()

    def _replace_with_greeting(self, kind: str) -> None:
        self.stop_generating()
        self._generation += 1
        greeting = greeting_message(kind, self.language)
        self.config.greeting = greeting.content
        self.messages = [greeting]
        self.phase = ConversationPhase.FRESH

    def reset_conversation(self, language: Optional[Union[str, LanguageType]] = None) -> None:
        if language is not None:
            self.config.language = LanguageType(language)
        self._replace_with_greeting("reset")

    def toggle_language(self) -> LanguageType:
        if self.config.language == LanguageType.ENGLISH:
            self.config.language = LanguageType.INDONESIAN
        else:
            self.config.language = LanguageType.ENGLISH
        self._replace_with_greeting("language")
        return self.config.language

    def toggle_theme(self):
        index = THEME_ORDER.index(self.config.theme)
        self.config.theme = THEME_ORDER[(index + 1) % len(THEME_ORDER)]
        return self.config.theme

    def dispatch_action(self, button: Union[ActionButton, Dict[str, Any]]) -> Optional[NavigationCommand]:
        """Run the button's action, then record the click as a user message"""
        self.stop_generating()
        if isinstance(button, dict):
            label = button.get("label", "")
            parsed = parse_action_button(button)
        else:
            label = button.label
            parsed = button

        command = self.dispatcher.execute(parsed)
        self.messages.append(Message(role=Role.USER, content=f"✓ {label}"))
        self.phase = ConversationPhase.IN_PROGRESS
        return command

    def update_current_page(self, path: str, html: str = "") -> None:
        self.current_page = (path, html)

    async def analyze_page(self) -> Optional[MessageStream]:
        """Explain the page the visitor is on"""
        if self.current_page is None or self.is_busy:
            return None

        path, html = self.current_page
        page = self.knowledge_service.scan_current_page(path, html)
        self.phase = ConversationPhase.IN_PROGRESS
        if page.extractedText == UNSCANNABLE:
            return self._stream(ErrorHandler.page_scan_apology(self.language))

        return await self._respond(
            self.pipeline.prompt_manager.get_page_analysis_prompt(),
            self._history(),
            page_context=page,
            intent=IntentType.GENERIC,
            suggested_replies=PAGE_ANALYSIS_REPLIES.get(self.language, PAGE_ANALYSIS_REPLIES["en"]),
        )

    def quick_actions(self) -> List[Dict[str, str]]:
        if self.phase == ConversationPhase.FRESH:
            return QUICK_REPLIES[:VISIBLE_QUICK_REPLIES]
        return []

    def drain_notices(self) -> List[Notice]:
        notices, self._notices = self._notices, []
        return notices

    def snapshot(self) -> SessionSnapshot:
        navigation = self.navigator.drain() if isinstance(self.navigator, RecordingNavigator) else []
        return SessionSnapshot(
            sessionId=self.session_id,
            config=self.config,
            phase=self.phase,
            messages=list(self.messages),
            isLoading=self.is_loading,
            isGenerating=self.is_generating,
            quickActions=self.quick_actions(),
            notices=self.drain_notices(),
            navigation=navigation,
        )
