import httpx
import logging
from typing import Dict, Optional

from ..core.error_handling import NotificationError
from ..models.schemas import BookingConfirmationReport

logger = logging.getLogger(__name__)

PRIMARY_ENDPOINT = "/notifications/booking-confirmation"
ALTERNATIVE_ENDPOINTS = ["/bookings/send-confirmation", "/email/booking-confirmation"]

BANNERS = {
    "en": {
        True: "A confirmation email is on its way to your inbox.",
        False: "Your booking is confirmed, but we couldn't send the confirmation email. Please keep your booking reference.",
    },
    "id": {
        True: "Email konfirmasi sedang dikirim ke kotak masuk Anda.",
        False: "Pemesanan Anda berhasil, tetapi email konfirmasi tidak dapat dikirim. Harap simpan nomor pemesanan Anda.",
    },
}


class BookingNotificationService:
    """Booking confirmation emails. Failures never change the booking outcome."""

    def __init__(self, base_url: str = "http://localhost:5000/api", access_token: Optional[str] = None,
                 timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip('/')
        self.access_token = access_token
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        await self.client.aclose()

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _post(self, endpoint: str, booking_id: int) -> httpx.Response:
        response = await self.client.post(
            f"{self.base_url}{endpoint}",
            json={"booking_id": booking_id},
            headers=self._get_headers(),
        )
        response.raise_for_status()
        return response

    async def _deliver(self, booking_id: int) -> None:
        """Try the primary endpoint, then the alternatives on 404"""
        try:
            await self._post(PRIMARY_ENDPOINT, booking_id)
            return
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            if status_code in (500, 503):
                raise NotificationError("Email service appears to be down, but booking was successful",
                                        details={"status": status_code})
            if status_code != 404:
                raise NotificationError(f"Booking confirmation failed with status {status_code}")
        except httpx.HTTPError as e:
            raise NotificationError(f"Booking confirmation request failed: {e}")

        logger.debug("Primary endpoint failed for booking confirmation, trying alternatives...")
        last_error = None
        for endpoint in ALTERNATIVE_ENDPOINTS:
            try:
                await self._post(endpoint, booking_id)
                return
            except httpx.HTTPError as e:
                last_error = e
        raise NotificationError(f"All booking confirmation endpoints failed: {last_error}")

    async def send_booking_confirmation(self, booking_id: int) -> bool:
        try:
            await self._deliver(booking_id)
            logger.info(f"Booking confirmation sent for booking {booking_id}")
            return True
        except NotificationError:
            return False

    async def report_booking(self, booking_id: int, language: str = "en") -> BookingConfirmationReport:
        """Booking result for display; only the banner depends on the email outcome"""
        sent = await self.send_booking_confirmation(booking_id)
        banners = BANNERS.get(language, BANNERS["en"])
        return BookingConfirmationReport(
            bookingId=booking_id,
            booked=True,
            confirmationSent=sent,
            banner=banners[sent],
        )
