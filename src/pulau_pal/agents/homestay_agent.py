from typing import List, Union
import logging

from ..core.error_handling import ErrorHandler
from ..models.schemas import (
    MAX_ACTION_BUTTONS, ActionButton, BookAction, FilterAction, FilterParams,
    Homestay, HomestayRef, HomestayReply, ViewAction,
)
from ..models.session_models import ButtonVariant
from ..services.homestay_api import HomestayAPIClient, capacity_text, format_idr

logger = logging.getLogger(__name__)

MAX_SUMMARIZED = 3
DESCRIPTION_PREVIEW = 100
FILTER_QUERY = "sort=price"

TEXTS = {
    "en": {
        "empty": "🏝️ I don't see any homestays available right now, but our island always has hidden gems! Let me help you discover other experiences on Untung Jawa.",
        "title": "🏠✨ **Island Homestays Await You!**",
        "intro": "Here are our most enchanting accommodations where island magic meets comfort:",
        "night": "night",
        "outro": "🌊 Each homestay offers authentic island hospitality with modern comforts.",
        "fallback_description": "Island paradise awaits",
        "view": "View",
        "book": "Book",
        "filter": "Filter Homestays",
    },
    "id": {
        "empty": "🏝️ Saat ini belum ada homestay yang tersedia, tetapi pulau kami selalu punya permata tersembunyi! Mari saya bantu Anda menemukan pengalaman lain di Untung Jawa.",
        "title": "🏠✨ **Homestay Pulau Menanti Anda!**",
        "intro": "Berikut akomodasi terbaik kami, tempat keajaiban pulau bertemu kenyamanan:",
        "night": "malam",
        "outro": "🌊 Setiap homestay menawarkan keramahan khas pulau dengan kenyamanan modern.",
        "fallback_description": "Surga pulau menanti",
        "view": "Lihat",
        "book": "Pesan",
        "filter": "Saring Homestay",
    },
}


class HomestayAgent:
    """Answers lodging questions straight from live inventory, without the generative backend"""

    def __init__(self, homestay_client: HomestayAPIClient):
        self.homestay_client = homestay_client

    async def handle(self, query: str, language: str = "en") -> Union[str, HomestayReply]:
        """Summary plus view/book buttons, or a plain string when there is nothing to show"""
        texts = TEXTS.get(language, TEXTS["en"])
        try:
            homestays = await self.homestay_client.get_all_homestays(language)
        except Exception as e:
            logger.error(f"Error fetching homestays for '{query}': {e}")
            return ErrorHandler.homestay_apology(language)

        if not homestays:
            return texts["empty"]

        top = homestays[:MAX_SUMMARIZED]
        return HomestayReply(
            response=self._summarize(top, texts),
            actionButtons=self._buttons(top, texts),
        )

    def _summarize(self, homestays: List[Homestay], texts: dict) -> str:
        response = f"{texts['title']}\n\n{texts['intro']}\n\n"
        for index, homestay in enumerate(homestays, 1):
            description = (homestay.description or "")[:DESCRIPTION_PREVIEW] or texts["fallback_description"]
            response += f"**{index}. {homestay.title}** 🌺\n"
            response += f"💰 From {format_idr(homestay.base_price)}/{texts['night']} | 👥 {capacity_text(homestay.max_guests)}\n"
            response += f"{description}...\n\n"
        response += texts["outro"]
        return response

    def _buttons(self, homestays: List[Homestay], texts: dict) -> List[ActionButton]:
        buttons: List[ActionButton] = []
        for homestay in homestays:
            buttons.append(ViewAction(
                label=f"{texts['view']} {homestay.title}",
                data=HomestayRef(id=homestay.id),
                icon="eye",
                variant=ButtonVariant.OUTLINE,
            ))
            buttons.append(BookAction(
                label=f"{texts['book']} {homestay.title}",
                data=HomestayRef(id=homestay.id),
                icon="calendar",
                variant=ButtonVariant.PRIMARY,
            ))
        buttons.append(FilterAction(
            label=texts["filter"],
            data=FilterParams(params=FILTER_QUERY),
            icon="filter",
            variant=ButtonVariant.SECONDARY,
        ))
        return buttons[:MAX_ACTION_BUTTONS]
