#!/usr/bin/env python3
"""
Pulau Pal Assistant API - Main Application
Session-based tourism assistant for Untung Jawa island using LangGraph
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .agents.homestay_agent import HomestayAgent
from .agents.response_pipeline import ResponsePipeline
from .core.config import settings
from .core.conversation_controller import TRIP_PLAN_PROMPTS, ConversationController
from .core.prompt_manager import PromptManager
from .llm.gemini_client import GeminiClient
from .models.schemas import (
    ActionRequest, BookingConfirmationReport, CreateSessionRequest, PageUpdateRequest,
    ResetRequest, SendMessageRequest, SessionConfig, SessionSnapshot,
)
from .models.session_models import LanguageType
from .services.homestay_api import HomestayAPIClient
from .services.knowledge_service import KnowledgeService
from .services.notification_service import BookingNotificationService

logger = logging.getLogger(__name__)

# Global variables for services
response_pipeline: ResponsePipeline = None
knowledge_service: KnowledgeService = None
notification_service: BookingNotificationService = None

# Active chat sessions
sessions: Dict[str, ConversationController] = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global response_pipeline, knowledge_service, notification_service

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info("🚀 Initializing Pulau Pal Assistant API...")

    prompt_manager = PromptManager()
    missing = [key for key, loaded in prompt_manager.validate_prompts().items() if not loaded]
    if missing:
        logger.warning(f"Missing prompts: {missing}")

    homestay_client = HomestayAPIClient(
        base_url=settings.HOMESTAY_API_BASE_URL,
        access_token=settings.HOMESTAY_API_TOKEN or None,
        timeout=settings.HOMESTAY_API_TIMEOUT,
    )
    knowledge_service = KnowledgeService(homestay_client)
    logger.info("✅ Knowledge service initialized")

    llm_client = GeminiClient()
    response_pipeline = ResponsePipeline(
        llm_client,
        knowledge_service,
        prompt_manager=prompt_manager,
        homestay_agent=HomestayAgent(homestay_client),
    )
    logger.info("✅ Response pipeline (LangGraph-based) initialized")

    notification_service = BookingNotificationService(
        base_url=settings.HOMESTAY_API_BASE_URL,
        access_token=settings.HOMESTAY_API_TOKEN or None,
        timeout=settings.HOMESTAY_API_TIMEOUT,
    )
    logger.info("🎉 Pulau Pal Assistant API ready!")

    yield

    logger.info("🔄 Shutting down Pulau Pal Assistant API...")
    for controller in sessions.values():
        controller.stop_generating()
    sessions.clear()
    await homestay_client.aclose()
    await notification_service.aclose()


# Create FastAPI app
app = FastAPI(
    title="Pulau Pal Assistant API",
    description="Tourism assistant for Untung Jawa island with streaming answers and action buttons",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def cleanup_expired_sessions() -> int:
    """Remove idle sessions to prevent memory leaks"""
    current_time = datetime.now(timezone.utc)
    expired = [
        session_id for session_id, controller in sessions.items()
        if controller.is_expired(settings.SESSION_TIMEOUT_MINUTES, current_time)
    ]
    for session_id in expired:
        sessions.pop(session_id).stop_generating()
        logger.info(f"Cleaned up expired session: {session_id}")
    return len(expired)


def get_session(session_id: str) -> ConversationController:
    if not response_pipeline:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assistant service not initialized"
        )
    cleanup_expired_sessions()
    controller = sessions.get(session_id)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found"
        )
    controller.touch()
    return controller


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "service": "Pulau Pal Assistant API",
        "version": "1.0.0",
        "description": "Tourism assistant for Untung Jawa island",
        "endpoints": {
            "sessions": "/api/v1/chat/sessions",
            "bookings": "/api/v1/bookings/{booking_id}/confirmation",
            "health": "/health",
            "docs": "/docs"
        },
        "tripPlanPrompts": TRIP_PLAN_PROMPTS,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Pulau Pal Assistant API",
        "activeSessions": len(sessions),
    }


@app.post("/api/v1/chat/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(request: Optional[CreateSessionRequest] = None):
    """Start a new chat session with the initial greeting"""
    if not response_pipeline:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assistant service not initialized"
        )
    cleanup_expired_sessions()
    language = request.language if request and request.language else LanguageType(settings.DEFAULT_LANGUAGE)
    controller = ConversationController(
        response_pipeline,
        knowledge_service,
        config=SessionConfig(botName=settings.BOT_NAME, language=language),
    )
    sessions[controller.session_id] = controller
    logger.info(f"🆕 Created chat session {controller.session_id} ({language.value})")
    return controller.snapshot()


@app.get("/api/v1/chat/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session_snapshot(session_id: str):
    """Current messages and flags; notices and navigation commands are drained"""
    return get_session(session_id).snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/messages", response_model=SessionSnapshot)
async def send_message(session_id: str, request: SendMessageRequest):
    """Send a visitor message; the answer streams in on subsequent snapshots"""
    controller = get_session(session_id)
    await controller.send_user_message(request.text)
    return controller.snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/stop", response_model=SessionSnapshot)
async def stop_generating(session_id: str):
    controller = get_session(session_id)
    controller.stop_generating()
    return controller.snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/reset", response_model=SessionSnapshot)
async def reset_session(session_id: str, request: Optional[ResetRequest] = None):
    controller = get_session(session_id)
    controller.reset_conversation(request.language if request else None)
    return controller.snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/language/toggle", response_model=SessionSnapshot)
async def toggle_language(session_id: str):
    controller = get_session(session_id)
    controller.toggle_language()
    return controller.snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/theme/toggle", response_model=SessionSnapshot)
async def toggle_theme(session_id: str):
    controller = get_session(session_id)
    controller.toggle_theme()
    return controller.snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/actions", response_model=SessionSnapshot)
async def dispatch_action(session_id: str, request: ActionRequest):
    """Execute an action button click"""
    controller = get_session(session_id)
    controller.dispatch_action(request.model_dump(exclude_none=True))
    return controller.snapshot()


@app.put("/api/v1/chat/sessions/{session_id}/page", response_model=SessionSnapshot)
async def update_page(session_id: str, request: PageUpdateRequest):
    controller = get_session(session_id)
    controller.update_current_page(request.path, request.html)
    return controller.snapshot()


@app.post("/api/v1/chat/sessions/{session_id}/page/analyze", response_model=SessionSnapshot)
async def analyze_page(session_id: str):
    """Explain the page the visitor is currently on"""
    controller = get_session(session_id)
    await controller.analyze_page()
    return controller.snapshot()


@app.delete("/api/v1/chat/sessions/{session_id}")
async def delete_session(session_id: str):
    """Close a chat session"""
    controller = get_session(session_id)
    controller.stop_generating()
    del sessions[session_id]
    return {"status": "success", "message": f"Session {session_id} closed"}


@app.post("/api/v1/bookings/{booking_id}/confirmation", response_model=BookingConfirmationReport)
async def send_booking_confirmation(booking_id: int, language: LanguageType = LanguageType.ENGLISH):
    """Send the booking confirmation email; the booking itself always stands"""
    if not notification_service:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Notification service not initialized"
        )
    return await notification_service.report_booking(booking_id, language.value)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
