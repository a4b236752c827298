from ..models.session_models import IntentType

HOMESTAY_KEYWORDS = ("homestay", "accommodation", "penginapan")
WEATHER_KEYWORDS = ("weather", "cuaca")

# Topics that indicate general knowledge questions rather than tourism-specific ones
GENERAL_TOPICS = (
    "weather", "climate", "temperature", "forecast",
    "news", "current events", "history", "geography",
    "science", "technology", "sports", "entertainment",
    "education", "health", "medicine", "politics",
    "economy", "business", "finance", "culture", "art",
    "music", "movies", "books", "celebrities", "recipe",
    "cooking", "food", "drink",
)


def _contains_any(text: str, keywords) -> bool:
    return any(keyword in text for keyword in keywords)


def classify(utterance: str) -> IntentType:
    """Route an utterance by keyword; homestay wins when both sets match"""
    text = (utterance or "").lower()
    if _contains_any(text, HOMESTAY_KEYWORDS):
        return IntentType.HOMESTAY_QUERY
    if _contains_any(text, WEATHER_KEYWORDS):
        return IntentType.WEATHER_QUERY
    return IntentType.GENERIC


def is_general_topic(utterance: str) -> bool:
    """True when the question is general knowledge rather than tourism"""
    return _contains_any((utterance or "").lower(), GENERAL_TOPICS)
