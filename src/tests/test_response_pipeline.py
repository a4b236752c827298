# test_response_pipeline.py

import asyncio

import requests

from conftest import FakeLLMClient, build_pipeline, make_homestay

from pulau_pal.agents.response_pipeline import generate_suggested_replies
from pulau_pal.core.error_handling import (
    AuthorizationError, ErrorHandler, HomestayLookupError, MalformedResponseError,
    RequestFormatError, TransportError,
)
from pulau_pal.core.prompt_manager import PromptManager
from pulau_pal.llm.gemini_client import SAFETY_SETTINGS, GeminiClient
from pulau_pal.models.schemas import BookAction, FilterAction, PageContext, ViewAction
from pulau_pal.models.session_models import IntentType, ResponseTier

FALLBACKS = PromptManager().get_fallback_responses()
SYSTEM = PromptManager().get_system_instructions()

HOMESTAYS = [
    make_homestay(1, "Sunrise Cottage", 350000, 4, "x" * 150),
    make_homestay(2, "Mangrove House", 275000, 2),
    make_homestay(3, "Pier View", 500000, None),
    make_homestay(4, "Coral Loft"),
    make_homestay(5, "Lagoon Hut"),
]


def respond(pipeline, message, **kwargs):
    return asyncio.run(pipeline.respond(message, **kwargs))


def test_homestay_query_summarizes_three():
    """Homestay questions are answered from inventory without the generative backend"""
    llm = FakeLLMClient()
    pipeline, inventory = build_pipeline(llm, homestays=HOMESTAYS)

    result = respond(pipeline, "Show me a homestay", language="id")

    assert result.tier == ResponseTier.HOMESTAY
    assert llm.calls == []
    assert inventory.languages == ["id"]
    assert "**1. Sunrise Cottage** 🌺" in result.text
    assert "**3. Pier View** 🌺" in result.text
    assert "Coral Loft" not in result.text
    assert "Rp 350.000" in result.text
    assert "1-4 guests" in result.text
    assert "2-4 guests" in result.text
    assert ("x" * 100 + "...") in result.text
    assert ("x" * 101) not in result.text
    assert result.suggestedReplies == []

    buttons = result.actionButtons
    assert len(buttons) == 6
    assert [type(b) for b in buttons] == [ViewAction, BookAction] * 3
    assert [b.data.id for b in buttons] == [1, 1, 2, 2, 3, 3]


def test_homestay_button_count_for_small_inventory():
    for count, expected in [(1, 3), (2, 5), (3, 6)]:
        pipeline, _ = build_pipeline(homestays=HOMESTAYS[:count])
        result = respond(pipeline, "any accommodation?")
        assert len(result.actionButtons) == expected
        if count < 3:
            assert isinstance(result.actionButtons[-1], FilterAction)


def test_empty_inventory_is_plain_text():
    pipeline, _ = build_pipeline(homestays=[])
    result = respond(pipeline, "penginapan")
    assert result.tier == ResponseTier.HOMESTAY
    assert result.actionButtons is None
    assert "homestays" in result.text


def test_inventory_failure_apologizes():
    llm = FakeLLMClient()
    pipeline, _ = build_pipeline(llm, homestay_error=HomestayLookupError("down"))
    result = respond(pipeline, "homestay please")
    assert result.text == ErrorHandler.homestay_apology("en")
    assert result.actionButtons is None
    assert result.notice is None
    assert llm.calls == []


def test_primary_generation_prompt():
    llm = FakeLLMClient("Boats leave from Muara Angke.")
    pipeline, _ = build_pipeline(llm, homestays=HOMESTAYS[:1])
    history = [{"role": "assistant", "content": "Hi there"}]

    result = respond(pipeline, "How do I get to the island?", history=history)

    assert result.tier == ResponseTier.PRIMARY
    assert result.text == "Boats leave from Muara Angke."
    assert result.notice is None
    assert len(result.suggestedReplies) == 3
    assert len(llm.calls) == 1

    call = llm.calls[0]
    assert call["generation_config"] == {"temperature": 0.7, "maxOutputTokens": 800, "topP": 0.9, "topK": 40}
    assert call["safety_settings"] == SAFETY_SETTINGS
    prompt = call["prompt"]
    assert prompt.startswith(SYSTEM)
    assert "--- TOURISM QUERY DETECTED ---" in prompt
    assert '"title": "Sunrise Cottage"' in prompt
    assert "Conversation History:\nassistant: Hi there" in prompt
    assert prompt.endswith("User: How do I get to the island?")


def test_general_label_and_empty_inventory_in_context():
    llm = FakeLLMClient("Jakarta was founded long ago.")
    pipeline, _ = build_pipeline(llm, homestay_error=HomestayLookupError("down"))
    respond(pipeline, "Tell me the history of Jakarta")
    prompt = llm.calls[0]["prompt"]
    assert "--- GENERAL QUERY DETECTED ---" in prompt
    assert '"liveInventory": []' in prompt


def test_weather_goes_to_generation():
    llm = FakeLLMClient("Sunny most of the year.")
    pipeline, _ = build_pipeline(llm)
    result = respond(pipeline, "What's the weather like?")
    assert result.tier == ResponseTier.PRIMARY
    assert len(llm.calls) == 1


def test_request_format_error_retries_simplified():
    llm = FakeLLMClient(RequestFormatError("bad request"), "Simpler answer.")
    pipeline, _ = build_pipeline(llm)

    result = respond(pipeline, "Where can I snorkel?")

    assert result.tier == ResponseTier.SIMPLIFIED
    assert result.text == "Simpler answer."
    assert result.notice is None
    assert len(llm.calls) == 2
    retry = llm.calls[1]
    assert retry["prompt"] == f"{SYSTEM}\n\nUser: Where can I snorkel?"
    assert retry["generation_config"] is None
    assert retry["safety_settings"] is None


def test_raw_http_400_is_retried():
    response = requests.Response()
    response.status_code = 400
    llm = FakeLLMClient(requests.HTTPError(response=response), "Retried.")
    pipeline, _ = build_pipeline(llm)
    result = respond(pipeline, "hello")
    assert result.tier == ResponseTier.SIMPLIFIED
    assert len(llm.calls) == 2


def test_retry_failure_falls_back():
    llm = FakeLLMClient(RequestFormatError("bad"), TransportError("down"))
    pipeline, _ = build_pipeline(llm)
    result = respond(pipeline, "hello")
    assert result.tier == ResponseTier.FALLBACK
    assert result.text in FALLBACKS
    assert result.notice is not None
    assert len(llm.calls) == 2


def test_authorization_error_skips_retry():
    llm = FakeLLMClient(AuthorizationError("forbidden"))
    pipeline, _ = build_pipeline(llm)
    result = respond(pipeline, "hello")
    assert result.tier == ResponseTier.FALLBACK
    assert result.text in FALLBACKS
    assert result.notice.title == "Authorization Issue"
    assert len(llm.calls) == 1


def test_transport_and_malformed_errors_skip_retry():
    for error in (TransportError("timeout"), MalformedResponseError("no candidates")):
        llm = FakeLLMClient(error)
        pipeline, _ = build_pipeline(llm)
        result = respond(pipeline, "hello")
        assert result.tier == ResponseTier.FALLBACK
        assert result.notice.title == "Connection Issue"
        assert len(llm.calls) == 1


def test_missing_credential_returns_setup_message(monkeypatch):
    """No key: setup message, and neither inventory nor Gemini is contacted"""
    def fail(*args, **kwargs):
        raise AssertionError("network must not be used")

    monkeypatch.setattr(requests, "post", fail)
    pipeline, inventory = build_pipeline(GeminiClient(api_key=""), homestays=HOMESTAYS[:1])
    result = respond(pipeline, "hello")
    assert result.tier == ResponseTier.UNCONFIGURED
    assert result.text == PromptManager().get_setup_message()
    assert result.notice is None
    assert result.suggestedReplies == generate_suggested_replies("hello")
    assert inventory.languages == []


def test_fallback_draws_cover_the_set():
    pipeline, _ = build_pipeline(seed=42)
    draws = [pipeline.pick_fallback() for _ in range(1000)]
    assert set(draws) <= set(FALLBACKS)
    assert set(draws) == set(FALLBACKS)


def test_page_context_and_preset_replies():
    llm = FakeLLMClient("This page lists homestays.")
    pipeline, _ = build_pipeline(llm)
    page = PageContext(path="/accommodation", title="Stays", extractedText="## Our homestays")

    result = respond(
        pipeline,
        "Analyze this page and help the user.",
        page_context=page,
        intent=IntentType.GENERIC,
        suggested_replies=["Tell me more about this", "What can I do here?", "Continue exploring"],
    )

    assert result.suggestedReplies == ["Tell me more about this", "What can I do here?", "Continue exploring"]
    assert "URL path: /accommodation" in llm.calls[0]["prompt"]
    assert "## Our homestays" in llm.calls[0]["prompt"]


def test_forced_intent_skips_keyword_routing():
    llm = FakeLLMClient("Generated.")
    pipeline, inventory = build_pipeline(llm, homestays=HOMESTAYS)
    result = respond(pipeline, "homestay page summary", intent=IntentType.GENERIC)
    assert result.tier == ResponseTier.PRIMARY
    # inventory still feeds the knowledge context
    assert inventory.languages == ["en"]


def test_suggested_replies_are_topic_aware():
    assert generate_suggested_replies("any rooms to stay?") == ["Show me rooms", "Check availability", "Book a homestay"]
    assert generate_suggested_replies("snorkel tour") == ["What's the cost?", "How to book?", "Tell me more"]
    assert generate_suggested_replies("hello") == ["Tell me more", "What else should I know?", "Book a homestay"]
    assert len(generate_suggested_replies("hello", "id")) == 3
