"""
Knowledge base about Untung Jawa, merged with live homestay inventory.
"""

import logging
from typing import List

from ..models.schemas import FAQ, Homestay, InventoryEntry, KnowledgeContext, PageContext, StaticFacts
from .homestay_api import HomestayAPIClient
from .page_scanner import PageScanner

logger = logging.getLogger(__name__)

UNTUNG_JAWA_INFO = StaticFacts(
    location="Untung Jawa is a small island located in the Thousand Islands archipelago, north of Jakarta, Indonesia.",
    transportation="Visitors can reach Untung Jawa by boat from Muara Angke or Marina Ancol ports in Jakarta.",
    attractions=[
        "Beautiful beaches with clear water",
        "Mangrove forests",
        "Snorkeling and diving spots",
        "Local seafood restaurants",
        "Cultural performances",
    ],
    activities=[
        "Swimming",
        "Snorkeling",
        "Island hopping",
        "Kayaking",
        "Cycling around the island",
        "Beach camping",
    ],
    bestTimeToVisit="The best time to visit is during the dry season from April to October.",
    accommodations="Various homestays are available on the island, ranging from basic to more comfortable options.",
)

FAQ_DATA = [
    FAQ(question="How do I get to Untung Jawa?",
        answer="You can take a boat from either Muara Angke or Marina Ancol ports in Jakarta. The journey takes approximately 30-45 minutes."),
    FAQ(question="What activities can I do on Untung Jawa?",
        answer="You can enjoy swimming, snorkeling, island hopping, kayaking, cycling around the island, and beach camping."),
    FAQ(question="How do I book a homestay?",
        answer="You can book a homestay through our website by navigating to the Homestays page, selecting your preferred accommodation, and following the booking process."),
    FAQ(question="What is the best time to visit?",
        answer="The best time to visit is during the dry season from April to October when the weather is more predictable and the sea is calmer."),
    FAQ(question="Are there restaurants on the island?",
        answer="Yes, there are several local seafood restaurants and small eateries on the island offering fresh seafood and Indonesian cuisine."),
]


class KnowledgeService:
    """Read-only view over static facts, FAQs, live inventory and the current page"""

    def __init__(self, homestay_client: HomestayAPIClient, page_scanner: PageScanner = None):
        self.homestay_client = homestay_client
        self.page_scanner = page_scanner or PageScanner()

    def get_untung_jawa_info(self) -> StaticFacts:
        return UNTUNG_JAWA_INFO

    def get_faqs(self) -> List[FAQ]:
        return list(FAQ_DATA)

    async def get_current_homestays(self, language: str = "en") -> List[Homestay]:
        try:
            return await self.homestay_client.get_all_homestays(language)
        except Exception as e:
            logger.error(f"Error fetching homestay data for knowledge base: {e}")
            return []

    async def generate_context(self, language: str = "en") -> KnowledgeContext:
        """Fresh context for every generation; inventory failures leave it empty"""
        homestays = await self.get_current_homestays(language)
        inventory = [
            InventoryEntry(
                id=homestay.id,
                title=homestay.title,
                price=homestay.base_price,
                location=homestay.location,
                maxGuests=homestay.max_guests,
            )
            for homestay in homestays
        ]
        return KnowledgeContext(
            staticFacts=self.get_untung_jawa_info(),
            faqs=self.get_faqs(),
            liveInventory=inventory,
        )

    def scan_current_page(self, path: str, html: str) -> PageContext:
        return self.page_scanner.scan(path, html)
