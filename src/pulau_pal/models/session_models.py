from enum import Enum


class Role(str, Enum):
    """Author of a chat message"""
    USER = "user"
    ASSISTANT = "assistant"


class LanguageType(str, Enum):
    """Languages supported by the assistant"""
    ENGLISH = "en"
    INDONESIAN = "id"


class ThemeType(str, Enum):
    """Chat window themes, in toggle order"""
    OCEAN = "ocean"
    SUNSET = "sunset"
    FOREST = "forest"
    LIGHT = "light"
    DARK = "dark"


class IntentType(str, Enum):
    """Result of keyword intent routing"""
    HOMESTAY_QUERY = "homestay-query"
    WEATHER_QUERY = "weather-query"
    GENERIC = "generic"


class ConversationPhase(str, Enum):
    """Whether the visitor has interacted with the assistant yet"""
    FRESH = "fresh"
    IN_PROGRESS = "in_progress"


class ButtonVariant(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    OUTLINE = "outline"


class ErrorClass(str, Enum):
    """Retry policy buckets for generative backend failures"""
    RETRYABLE = "retryable"
    UNAUTHORIZED = "unauthorized"
    FATAL = "fatal"


class ResponseTier(str, Enum):
    """Which pipeline strategy produced an answer"""
    HOMESTAY = "homestay"
    PRIMARY = "primary"
    SIMPLIFIED = "simplified"
    FALLBACK = "fallback"
    UNCONFIGURED = "unconfigured"


THEME_ORDER = [ThemeType.OCEAN, ThemeType.SUNSET, ThemeType.FOREST, ThemeType.LIGHT, ThemeType.DARK]
