from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .session_models import (
    ButtonVariant, ConversationPhase, LanguageType, ResponseTier, Role, ThemeType
)

MAX_SUGGESTED_REPLIES = 3
MAX_ACTION_BUTTONS = 6


# Action buttons: one model per action tag, each with its own payload shape

class HomestayRef(BaseModel):
    id: int


class FilterParams(BaseModel):
    params: str = Field("", description="Raw query string for the listing route")


class NavigatePath(BaseModel):
    path: str


class ExternalLink(BaseModel):
    url: str


class _ButtonBase(BaseModel):
    label: str
    icon: Optional[str] = None
    variant: ButtonVariant = ButtonVariant.OUTLINE


class BookAction(_ButtonBase):
    action: Literal["book"] = "book"
    data: HomestayRef


class ViewAction(_ButtonBase):
    action: Literal["view"] = "view"
    data: HomestayRef


class FilterAction(_ButtonBase):
    action: Literal["filter"] = "filter"
    data: FilterParams = Field(default_factory=FilterParams)


class NavigateAction(_ButtonBase):
    action: Literal["navigate"] = "navigate"
    data: NavigatePath


class ExternalAction(_ButtonBase):
    action: Literal["external"] = "external"
    data: ExternalLink


ActionButton = Annotated[
    Union[BookAction, ViewAction, FilterAction, NavigateAction, ExternalAction],
    Field(discriminator="action"),
]

_action_button_adapter = TypeAdapter(ActionButton)


def parse_action_button(raw: Dict[str, Any]) -> Optional[ActionButton]:
    """Parse a raw button payload; unknown or malformed actions give None"""
    try:
        return _action_button_adapter.validate_python(raw)
    except ValidationError:
        return None


class Location(BaseModel):
    lat: float
    lng: float
    name: str


class Activity(BaseModel):
    id: str
    name: str
    price: str
    duration: str
    image: str


class Message(BaseModel):
    """A single chat message. Only the last message of a conversation is ever mutated."""
    role: Role
    content: str = ""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    isAnimating: bool = False
    canStop: bool = False
    suggestedReplies: List[str] = Field(default_factory=list)
    actionButtons: List[ActionButton] = Field(default_factory=list)
    images: Optional[List[str]] = None
    location: Optional[Location] = None
    activity: Optional[List[Activity]] = None


class SessionConfig(BaseModel):
    botName: str = "Pulau Pal"
    greeting: str = ""
    language: LanguageType = LanguageType.ENGLISH
    theme: ThemeType = ThemeType.OCEAN


class Notice(BaseModel):
    """Transient, non-blocking toast shown next to the chat"""
    title: str
    description: str
    variant: str = "destructive"


class NavigationCommand(BaseModel):
    target: str
    newContext: bool = False


# Knowledge

class Homestay(BaseModel):
    """Homestay as returned by the inventory API"""
    id: int
    title: str
    description: Optional[str] = ""
    base_price: float = 0
    location: Optional[str] = None
    max_guests: Optional[int] = None
    images: List[str] = Field(default_factory=list)


class InventoryEntry(BaseModel):
    id: int
    title: str
    price: float
    location: Optional[str] = None
    maxGuests: Optional[int] = None


class FAQ(BaseModel):
    question: str
    answer: str


class StaticFacts(BaseModel):
    location: str
    transportation: str
    attractions: List[str]
    activities: List[str]
    bestTimeToVisit: str
    accommodations: str


class KnowledgeContext(BaseModel):
    staticFacts: StaticFacts
    faqs: List[FAQ]
    liveInventory: List[InventoryEntry] = Field(default_factory=list)


class PageContext(BaseModel):
    path: str
    title: str
    extractedText: str


# Pipeline output

class HomestayReply(BaseModel):
    response: str
    actionButtons: List[ActionButton]


class GenerationResult(BaseModel):
    text: str
    tier: ResponseTier
    suggestedReplies: List[str] = Field(default_factory=list)
    actionButtons: Optional[List[ActionButton]] = None
    notice: Optional[Notice] = None


# API schemas

class SendMessageRequest(BaseModel):
    text: str = Field(..., description="User message content")

    model_config = ConfigDict(json_schema_extra={"example": {"text": "Show me the most magical homestays"}})


class ResetRequest(BaseModel):
    language: Optional[LanguageType] = None


class ActionRequest(BaseModel):
    """Button click as sent by the client; validated against the action union on dispatch"""
    label: str
    action: str
    data: Dict[str, Any] = Field(default_factory=dict)
    icon: Optional[str] = None
    variant: Optional[str] = None


class PageUpdateRequest(BaseModel):
    path: str
    html: str = ""


class CreateSessionRequest(BaseModel):
    language: Optional[LanguageType] = None


class SessionSnapshot(BaseModel):
    sessionId: str
    config: SessionConfig
    phase: ConversationPhase
    messages: List[Message]
    isLoading: bool
    isGenerating: bool
    quickActions: List[Dict[str, str]]
    notices: List[Notice] = Field(default_factory=list)
    navigation: List[NavigationCommand] = Field(default_factory=list)


class BookingConfirmationReport(BaseModel):
    bookingId: int
    booked: bool = True
    confirmationSent: bool
    banner: str
