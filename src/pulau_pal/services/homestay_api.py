import httpx
from typing import Any, Dict, List, Optional
import logging

from ..core.error_handling import HomestayLookupError
from ..models.schemas import Homestay

logger = logging.getLogger(__name__)


def format_idr(amount: float) -> str:
    """Rupiah with dot thousands separators, e.g. Rp 350.000"""
    return "Rp " + f"{int(round(amount or 0)):,}".replace(",", ".")


def capacity_text(max_guests: Optional[int]) -> str:
    return f"1-{max_guests} guests" if max_guests else "2-4 guests"


def _parse_homestay(item: Dict[str, Any]) -> Homestay:
    images = item.get("homestayImages") or item.get("images") or []
    urls = []
    for image in images:
        if isinstance(image, dict):
            url = image.get("img_url")
            if url:
                # primary image first
                if image.get("is_primary"):
                    urls.insert(0, url)
                else:
                    urls.append(url)
        elif isinstance(image, str):
            urls.append(image)

    return Homestay(
        id=item.get("id"),
        title=item.get("title", ""),
        description=item.get("description") or "",
        base_price=item.get("base_price") or 0,
        location=item.get("location"),
        max_guests=item.get("max_guests"),
        images=urls,
    )


class HomestayAPIClient:
    """Client for the homestay inventory backend"""

    def __init__(self, base_url: str = "http://localhost:5000/api", access_token: Optional[str] = None,
                 timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip('/')
        self.access_token = access_token
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        await self.client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers with authentication"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json"
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def get_all_homestays(self, language: str = "en") -> List[Homestay]:
        """Get all active homestays; the backend may ignore the language"""
        url = f"{self.base_url}/homestays"
        try:
            response = await self.client.get(url, params={"lang": language}, headers=self._get_headers())
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise HomestayLookupError(f"HTTP error getting homestays: {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            raise HomestayLookupError(f"Error getting homestays: {e}")

        items = data.get("data") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise HomestayLookupError("No data returned from homestays API", details={"response": data})

        homestays = []
        for item in items:
            try:
                homestays.append(_parse_homestay(item))
            except (ValueError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed homestay entry: {e}")
        logger.info(f"Fetched {len(homestays)} homestays (lang={language})")
        return homestays
