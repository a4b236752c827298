#!/usr/bin/env python3
"""
Response pipeline - LangGraph workflow producing one assistant answer per turn

Tiers, in order: homestay short-circuit, primary generation, simplified retry,
static fallback. Every tier catches its own failures.
"""

import asyncio
import json
import logging
import random
from typing import Any, Dict, List, Optional, TypedDict

from langgraph.graph import StateGraph, END

from ..core.config import settings
from ..core.error_handling import ConfigurationError, ErrorHandler, classify_error
from ..core.intent_router import classify, is_general_topic
from ..core.prompt_manager import PromptManager
from ..llm.gemini_client import SAFETY_SETTINGS, GeminiClient
from ..models.schemas import GenerationResult, HomestayReply, Notice, PageContext
from ..models.session_models import ErrorClass, IntentType, ResponseTier
from ..services.knowledge_service import KnowledgeService
from ..services.page_scanner import format_page_context
from .homestay_agent import HomestayAgent

logger = logging.getLogger(__name__)

HOMESTAY_TOPIC = ("homestay", "accommodation", "room", "stay", "penginapan", "kamar", "menginap")
ACTIVITY_TOPIC = ("activity", "activities", "snorkel", "tour", "kayak", "aktivitas", "wisata")

SUGGESTED_REPLIES = {
    "en": {
        "homestay": ["Show me rooms", "Check availability", "Book a homestay"],
        "activity": ["What's the cost?", "How to book?", "Tell me more"],
        "default": ["Tell me more", "What else should I know?", "Book a homestay"],
    },
    "id": {
        "homestay": ["Tunjukkan kamar", "Cek ketersediaan", "Pesan homestay"],
        "activity": ["Berapa biayanya?", "Bagaimana cara memesan?", "Ceritakan lebih lanjut"],
        "default": ["Ceritakan lebih lanjut", "Apa lagi yang perlu saya ketahui?", "Pesan homestay"],
    },
}


def generate_suggested_replies(query: str, language: str = "en") -> List[str]:
    """Three follow-ups matched to what the visitor asked about"""
    replies = SUGGESTED_REPLIES.get(language, SUGGESTED_REPLIES["en"])
    text = (query or "").lower()
    if any(word in text for word in HOMESTAY_TOPIC):
        return list(replies["homestay"])
    if any(word in text for word in ACTIVITY_TOPIC):
        return list(replies["activity"])
    return list(replies["default"])


def format_history(history: List[Dict[str, str]]) -> str:
    return "\n".join(f"{turn.get('role', 'user')}: {turn.get('content', '')}" for turn in history or [])


class PipelineState(TypedDict, total=False):
    """State for the LangGraph workflow"""
    # Input
    message: str
    language: str
    history: List[Dict[str, str]]
    page_context: Optional[PageContext]
    intent: Optional[IntentType]
    preset_replies: Optional[List[str]]

    # Processing
    error: Optional[BaseException]
    error_class: Optional[ErrorClass]

    # Output
    text: Optional[str]
    tier: Optional[ResponseTier]
    suggested_replies: List[str]
    action_buttons: Optional[List[Any]]
    notice: Optional[Notice]


class ResponsePipeline:
    """Produces one answer per turn; never raises to the caller"""

    def __init__(self, llm_client: GeminiClient, knowledge_service: KnowledgeService,
                 prompt_manager: PromptManager = None, homestay_agent: HomestayAgent = None,
                 rng: random.Random = None, generation_config: Dict[str, Any] = None):
        self.llm_client = llm_client
        self.knowledge_service = knowledge_service
        self.prompt_manager = prompt_manager or PromptManager()
        self.homestay_agent = homestay_agent or HomestayAgent(knowledge_service.homestay_client)
        self.rng = rng or random.Random()
        self.generation_config = generation_config if generation_config is not None else settings.generation_config

        self.fallback_responses = self.prompt_manager.get_fallback_responses()
        if not self.fallback_responses:
            raise ConfigurationError("Fallback responses are missing from prompts.md")

        self.workflow = self._build_workflow()

    def _build_workflow(self) -> StateGraph:
        """Build the LangGraph workflow"""
        workflow = StateGraph(PipelineState)

        workflow.add_node("classify_intent", self._classify_intent)
        workflow.add_node("homestay_lookup", self._homestay_lookup)
        workflow.add_node("generate_primary", self._generate_primary)
        workflow.add_node("generate_simplified", self._generate_simplified)
        workflow.add_node("static_fallback", self._static_fallback)
        workflow.add_node("suggest_replies", self._suggest_replies)

        workflow.set_entry_point("classify_intent")
        workflow.add_conditional_edges(
            "classify_intent",
            self._route_by_intent,
            {
                "homestay": "homestay_lookup",
                "generate": "generate_primary",
            }
        )
        workflow.add_edge("homestay_lookup", END)

        workflow.add_conditional_edges(
            "generate_primary",
            self._after_primary,
            {
                "done": "suggest_replies",
                "retry": "generate_simplified",
                "fallback": "static_fallback",
            }
        )
        workflow.add_conditional_edges(
            "generate_simplified",
            self._after_simplified,
            {
                "done": "suggest_replies",
                "fallback": "static_fallback",
            }
        )
        workflow.add_edge("static_fallback", "suggest_replies")
        workflow.add_edge("suggest_replies", END)

        return workflow.compile()

    def pick_fallback(self) -> str:
        return self.rng.choice(self.fallback_responses)

    async def _classify_intent(self, state: PipelineState) -> PipelineState:
        if state.get("intent") is None:
            state["intent"] = classify(state["message"])
        logger.debug(f"Intent for turn: {state['intent'].value}")
        return state

    def _route_by_intent(self, state: PipelineState) -> str:
        if state["intent"] == IntentType.HOMESTAY_QUERY:
            return "homestay"
        return "generate"

    async def _homestay_lookup(self, state: PipelineState) -> PipelineState:
        """Answer straight from inventory; no generative call"""
        reply = await self.homestay_agent.handle(state["message"], state["language"])
        if isinstance(reply, HomestayReply):
            state["text"] = reply.response
            state["action_buttons"] = reply.actionButtons
        else:
            state["text"] = reply
            state["action_buttons"] = None
        state["tier"] = ResponseTier.HOMESTAY
        state["suggested_replies"] = []
        return state

    async def _build_primary_prompt(self, state: PipelineState) -> str:
        message = state["message"]
        context = await self.knowledge_service.generate_context(state["language"])
        label = "--- GENERAL QUERY DETECTED ---" if is_general_topic(message) else "--- TOURISM QUERY DETECTED ---"

        page = state.get("page_context")
        page_text = format_page_context(page) if page is not None else "No page context available."

        enhanced_system_prompt = f"""{self.prompt_manager.get_system_instructions()}

{label}

KNOWLEDGE BASE:
{json.dumps(context.model_dump(mode="json"), indent=2, ensure_ascii=False)}

CURRENT PAGE:
{page_text}

Use the information above when it is relevant. Answer in the visitor's language ({state["language"]})."""

        return f"{enhanced_system_prompt}\n\nConversation History:\n{format_history(state.get('history'))}\n\nUser: {message}"

    def _setup_required(self, state: PipelineState) -> PipelineState:
        # no retry, no notice
        state["text"] = self.prompt_manager.get_setup_message()
        state["tier"] = ResponseTier.UNCONFIGURED
        return state

    async def _generate_primary(self, state: PipelineState) -> PipelineState:
        # missing credential: no context fetch, no network call
        if not self.llm_client.is_configured():
            return self._setup_required(state)
        try:
            prompt = await self._build_primary_prompt(state)
            state["text"] = await asyncio.to_thread(
                self.llm_client.generate_content, prompt, self.generation_config, SAFETY_SETTINGS
            )
            state["tier"] = ResponseTier.PRIMARY
        except ConfigurationError:
            return self._setup_required(state)
        except Exception as e:
            state["error"] = e
            state["error_class"] = classify_error(e)
            logger.warning(f"Primary generation failed ({state['error_class'].value}): {e}")
        return state

    def _after_primary(self, state: PipelineState) -> str:
        if state.get("tier") is not None:
            return "done"
        if state.get("error_class") == ErrorClass.RETRYABLE:
            return "retry"
        return "fallback"

    async def _generate_simplified(self, state: PipelineState) -> PipelineState:
        """Degraded retry: system instructions and utterance only, default generation settings"""
        prompt = f"{self.prompt_manager.get_system_instructions()}\n\nUser: {state['message']}"
        try:
            state["text"] = await asyncio.to_thread(self.llm_client.generate_content, prompt)
            state["tier"] = ResponseTier.SIMPLIFIED
        except Exception as e:
            state["error"] = e
            state["error_class"] = classify_error(e)
            logger.warning(f"Simplified retry failed ({state['error_class'].value}): {e}")
        return state

    def _after_simplified(self, state: PipelineState) -> str:
        if state.get("tier") is not None:
            return "done"
        return "fallback"

    async def _static_fallback(self, state: PipelineState) -> PipelineState:
        state["text"] = self.pick_fallback()
        state["tier"] = ResponseTier.FALLBACK
        state["notice"] = ErrorHandler.connection_notice(state.get("error"), state["language"])
        logger.warning("Serving static fallback response")
        return state

    async def _suggest_replies(self, state: PipelineState) -> PipelineState:
        preset = state.get("preset_replies")
        state["suggested_replies"] = list(preset) if preset else generate_suggested_replies(state["message"], state["language"])
        return state

    async def respond(self, message: str, language: str = "en", history: List[Dict[str, str]] = None,
                      page_context: Optional[PageContext] = None, intent: Optional[IntentType] = None,
                      suggested_replies: Optional[List[str]] = None) -> GenerationResult:
        """Run the workflow for one turn"""
        initial_state: PipelineState = {
            "message": message,
            "language": language,
            "history": history or [],
            "page_context": page_context,
            "intent": intent,
            "preset_replies": suggested_replies,
            "error": None,
            "error_class": None,
            "text": None,
            "tier": None,
            "suggested_replies": [],
            "action_buttons": None,
            "notice": None,
        }

        try:
            result = await self.workflow.ainvoke(initial_state)
        except Exception as e:
            logger.error(f"Response workflow failed: {e}")
            return GenerationResult(
                text=self.pick_fallback(),
                tier=ResponseTier.FALLBACK,
                suggestedReplies=generate_suggested_replies(message, language),
                notice=ErrorHandler.connection_notice(e, language),
            )

        return GenerationResult(
            text=result.get("text") or "",
            tier=result["tier"],
            suggestedReplies=result.get("suggested_replies") or [],
            actionButtons=result.get("action_buttons"),
            notice=result.get("notice"),
        )
