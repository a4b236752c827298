# test_notification_service.py

import asyncio
import json

import httpx

from pulau_pal.services.notification_service import BANNERS, BookingNotificationService


def run_with(handler, coro_factory):
    async def go():
        service = BookingNotificationService(
            base_url="http://backend.test/api",
            access_token="secret",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await coro_factory(service)
        finally:
            await service.aclose()

    return asyncio.run(go())


def test_primary_endpoint_success():
    seen = []

    def handler(request):
        seen.append((request.url.path, request.headers.get("Authorization"), json.loads(request.content)))
        return httpx.Response(200, json={"ok": True})

    report = run_with(handler, lambda service: service.report_booking(42))

    assert report.booked is True
    assert report.confirmationSent is True
    assert report.banner == BANNERS["en"][True]
    assert seen == [("/api/notifications/booking-confirmation", "Bearer secret", {"booking_id": 42})]


def test_404_tries_alternatives_in_order():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        if request.url.path.endswith("/email/booking-confirmation"):
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(404)

    sent = run_with(handler, lambda service: service.send_booking_confirmation(7))

    assert sent is True
    assert paths == [
        "/api/notifications/booking-confirmation",
        "/api/bookings/send-confirmation",
        "/api/email/booking-confirmation",
    ]


def test_email_service_down_keeps_booking():
    paths = []

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(503)

    report = run_with(handler, lambda service: service.report_booking(9, "id"))

    assert report.booked is True
    assert report.confirmationSent is False
    assert report.banner == BANNERS["id"][False]
    # no fallback endpoints when the service is down
    assert len(paths) == 1


def test_all_endpoints_missing():
    report = run_with(lambda request: httpx.Response(404), lambda service: service.report_booking(1))
    assert report.booked is True
    assert report.confirmationSent is False


def test_network_error_is_not_fatal():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert run_with(handler, lambda service: service.send_booking_confirmation(3)) is False
