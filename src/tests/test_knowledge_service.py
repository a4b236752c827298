# test_knowledge_service.py

import asyncio

import httpx
import pytest

from conftest import FakeHomestayClient, make_homestay

from pulau_pal.core.error_handling import HomestayLookupError
from pulau_pal.services.homestay_api import HomestayAPIClient, capacity_text, format_idr
from pulau_pal.services.knowledge_service import FAQ_DATA, KnowledgeService
from pulau_pal.services.page_scanner import UNSCANNABLE, PageScanner, format_page_context

PAGE_HTML = """
<html>
  <head><title>Homestays | Untung Jawa</title></head>
  <body>
    <nav><a href="/">Home</a><a href="/accommodation">Stay</a></nav>
    <main>
      <h1>Island Homestays</h1>
      <p>Sleep steps away from the beach.</p>
      <h2>Prices</h2>
      <p>From Rp 250.000 per night.</p>
    </main>
    <footer><p>Footer text</p></footer>
  </body>
</html>
"""


def homestay_api(handler):
    return HomestayAPIClient(
        base_url="http://inventory.test/api",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def test_context_includes_live_inventory():
    client = FakeHomestayClient([make_homestay(1, "Sunrise Cottage", 350000, 4)])
    service = KnowledgeService(client)

    context = asyncio.run(service.generate_context("id"))

    assert client.languages == ["id"]
    assert context.staticFacts.location.startswith("Untung Jawa")
    assert len(context.faqs) == len(FAQ_DATA)
    assert context.liveInventory[0].title == "Sunrise Cottage"
    assert context.liveInventory[0].price == 350000
    assert context.liveInventory[0].maxGuests == 4


def test_static_facts_come_from_island_info():
    service = KnowledgeService(FakeHomestayClient())
    context = asyncio.run(service.generate_context())
    assert context.staticFacts == service.get_untung_jawa_info()
    assert "Muara Angke" in context.staticFacts.transportation


def test_context_is_fresh_each_call():
    client = FakeHomestayClient([make_homestay(1, "A")])
    service = KnowledgeService(client)
    asyncio.run(service.generate_context())
    client.homestays = []
    context = asyncio.run(service.generate_context())
    assert context.liveInventory == []
    assert client.languages == ["en", "en"]


def test_inventory_failure_degrades_to_empty():
    service = KnowledgeService(FakeHomestayClient(error=HomestayLookupError("down")))
    context = asyncio.run(service.generate_context())
    assert context.liveInventory == []
    assert asyncio.run(service.get_current_homestays()) == []


def test_page_scan_extracts_blocks():
    page = KnowledgeService(FakeHomestayClient()).scan_current_page("/accommodation", PAGE_HTML)

    assert page.path == "/accommodation"
    assert page.title == "Homestays | Untung Jawa"
    assert page.extractedText == "\n\n".join([
        "## Island Homestays",
        "## Prices",
        "Sleep steps away from the beach.",
        "From Rp 250.000 per night.",
        "Link: Home",
        "Link: Stay",
    ])
    assert "Footer text" not in page.extractedText
    assert "URL path: /accommodation" in format_page_context(page)


def test_page_scan_failure_is_friendly(monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("parser crashed")

    monkeypatch.setattr("pulau_pal.services.page_scanner.BeautifulSoup", explode)
    page = PageScanner().scan("/broken", "<html>")
    assert page.extractedText == UNSCANNABLE


def test_idr_and_capacity_formatting():
    assert format_idr(350000) == "Rp 350.000"
    assert format_idr(1250000.4) == "Rp 1.250.000"
    assert capacity_text(6) == "1-6 guests"
    assert capacity_text(None) == "2-4 guests"


def test_homestay_api_parses_inventory():
    def handler(request):
        assert request.url.path == "/api/homestays"
        assert request.url.params["lang"] == "id"
        return httpx.Response(200, json={"data": [
            {
                "id": 9,
                "title": "Coral Loft",
                "description": "Two rooms",
                "base_price": 420000,
                "max_guests": 3,
                "homestayImages": [
                    {"img_url": "b.jpg", "is_primary": False},
                    {"img_url": "a.jpg", "is_primary": True},
                ],
            },
            {"title": "missing id"},
        ]})

    async def go():
        client = homestay_api(handler)
        try:
            return await client.get_all_homestays("id")
        finally:
            await client.aclose()

    homestays = asyncio.run(go())
    assert len(homestays) == 1
    assert homestays[0].id == 9
    assert homestays[0].images == ["a.jpg", "b.jpg"]


@pytest.mark.parametrize("response", [
    httpx.Response(500, json={"message": "boom"}),
    httpx.Response(200, json={"message": "no data"}),
    httpx.Response(200, text="not json"),
])
def test_homestay_api_failures_raise_lookup_error(response):
    async def go():
        client = homestay_api(lambda request: response)
        try:
            await client.get_all_homestays()
        finally:
            await client.aclose()

    with pytest.raises(HomestayLookupError):
        asyncio.run(go())
