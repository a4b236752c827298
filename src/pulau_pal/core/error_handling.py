#!/usr/bin/env python3
"""
Centralized error handling for the Pulau Pal assistant
"""

from typing import Any, Dict, Optional
import logging

import requests

from ..models.schemas import Notice
from ..models.session_models import ErrorClass

logger = logging.getLogger(__name__)


class AssistantError(Exception):
    """Base exception for assistant errors"""
    def __init__(self, message: str, error_code: str = "ASSISTANT_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        logger.error(f"AssistantError [{error_code}]: {message}")


class ConfigurationError(AssistantError):
    """Missing credential or required setting"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "CONFIGURATION_ERROR", details)


class GenerationError(AssistantError):
    """Generative backend failures"""
    def __init__(self, message: str, error_code: str, status_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.status_code = status_code


class RequestFormatError(GenerationError):
    """The backend rejected the shape of the request (HTTP 400)"""
    def __init__(self, message: str, status_code: Optional[int] = 400, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "REQUEST_FORMAT_ERROR", status_code, details)


class AuthorizationError(GenerationError):
    """Credential invalid or lacking permission (HTTP 401/403)"""
    def __init__(self, message: str, status_code: Optional[int] = 403, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "AUTHORIZATION_ERROR", status_code, details)


class TransportError(GenerationError):
    """Network failure, timeout or any other non-success status"""
    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "TRANSPORT_ERROR", status_code, details)


class MalformedResponseError(GenerationError):
    """Successful status but no candidate text in the payload"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "MALFORMED_RESPONSE", None, details)


class HomestayLookupError(AssistantError):
    """Homestay inventory could not be fetched"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "HOMESTAY_LOOKUP_ERROR", details)


class NotificationError(AssistantError):
    """Booking confirmation email could not be sent"""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "NOTIFICATION_ERROR", details)


def error_for_status(status_code: int, body: Any = None) -> GenerationError:
    """Map a non-success HTTP status from the generative backend to a typed error"""
    details = {"body": body} if body is not None else None
    if status_code == 400:
        return RequestFormatError(f"Backend rejected request format ({status_code})", status_code, details)
    if status_code in (401, 403):
        return AuthorizationError("API key is invalid or has insufficient permissions", status_code, details)
    if status_code == 404:
        return TransportError("Invalid API endpoint. Please check the configuration.", status_code, details)
    return TransportError(f"API Error: {status_code}", status_code, details)


def classify_error(error: BaseException) -> ErrorClass:
    """Decide the retry policy for a failed generation call"""
    if isinstance(error, RequestFormatError):
        return ErrorClass.RETRYABLE
    if isinstance(error, AuthorizationError):
        return ErrorClass.UNAUTHORIZED
    if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
        return classify_error(error_for_status(error.response.status_code))
    return ErrorClass.FATAL


class ErrorHandler:
    """User-facing texts and notices for failures"""

    APOLOGY = {
        "en": "🌺 I apologize, but I'm having trouble connecting to my island wisdom right now. Please try again in a moment!",
        "id": "🌺 Maaf, saya sedang kesulitan terhubung dengan kearifan pulau saat ini. Silakan coba lagi sebentar lagi!",
    }

    HOMESTAY_APOLOGY = {
        "en": "🌺 Let me help you discover the perfect island sanctuary! While I gather the latest information about our homestays, would you like to know about the island's attractions or activities?",
        "id": "🌺 Mari saya bantu Anda menemukan tempat menginap yang sempurna! Sambil saya mengumpulkan informasi terbaru tentang homestay kami, apakah Anda ingin tahu tentang atraksi atau aktivitas di pulau?",
    }

    PAGE_SCAN_APOLOGY = {
        "en": "🔍 I can see you're exploring our island website! How can I help guide you through this part of your journey?",
        "id": "🔍 Saya lihat Anda sedang menjelajahi situs pulau kami! Bagaimana saya bisa membantu Anda di bagian ini?",
    }

    @staticmethod
    def _pick(texts: Dict[str, str], language: str) -> str:
        return texts.get(language, texts["en"])

    @staticmethod
    def apology(language: str = "en") -> str:
        return ErrorHandler._pick(ErrorHandler.APOLOGY, language)

    @staticmethod
    def homestay_apology(language: str = "en") -> str:
        return ErrorHandler._pick(ErrorHandler.HOMESTAY_APOLOGY, language)

    @staticmethod
    def page_scan_apology(language: str = "en") -> str:
        return ErrorHandler._pick(ErrorHandler.PAGE_SCAN_APOLOGY, language)

    @staticmethod
    def connection_notice(error: Optional[BaseException] = None, language: str = "en") -> Notice:
        """Toast for pipeline-level failures"""
        if error is not None:
            logger.error(f"Handling generation failure: {type(error).__name__} - {error}")

        if isinstance(error, AuthorizationError):
            if language == "id":
                return Notice(title="Masalah Otorisasi", description="Asisten tidak dapat mengakses layanan AI. Menampilkan jawaban cadangan.")
            return Notice(title="Authorization Issue", description="The assistant could not access its AI service. Showing a fallback answer.")

        if language == "id":
            return Notice(title="Masalah Koneksi", description="Kesulitan menghubungi server pulau. Silakan coba lagi.")
        return Notice(title="Connection Issue", description="Having trouble reaching the island servers. Please try again.")
