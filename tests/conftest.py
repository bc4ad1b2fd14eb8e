"""Shared pytest fixtures for quote-a-bot tests."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from quote_a_bot.catalog import Catalog
from quote_a_bot.errors import RateFetchError
from quote_a_bot.models import Product
from quote_a_bot.transport import Transport

CARACAS = ZoneInfo("America/Caracas")


class RecordingTransport(Transport):
    """Transport that keeps everything it sends."""

    def __init__(self):
        self.sent: list[tuple[str, str]] = []
        self.media: list[tuple[str, bytes, str | None]] = []
        self.unreachable: set[str] = set()
        self._count = 0

    def _next_id(self) -> str:
        self._count += 1
        return f"msg-{self._count}"

    async def send_text(self, recipient_id, text):
        if recipient_id in self.unreachable:
            raise ConnectionError(f"cannot reach {recipient_id}")
        self.sent.append((recipient_id, text))
        return self._next_id()

    async def send_media(self, recipient_id, data, caption=None, filename=None):
        if recipient_id in self.unreachable:
            raise ConnectionError(f"cannot reach {recipient_id}")
        self.media.append((recipient_id, data, caption))
        return self._next_id()

    def texts_to(self, recipient_id: str) -> list[str]:
        return [text for recipient, text in self.sent if recipient == recipient_id]


class FakeRateSource:
    """Rate source returning fixed values; currencies in ``failing`` raise."""

    def __init__(self, dollar=36.5, euro=39.8):
        self.values = {"dollar": dollar, "euro": euro}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    async def fetch(self, currency):
        self.calls.append(currency)
        if currency in self.failing:
            raise RateFetchError(currency, "site down")
        return self.values[currency]


class FixedClock:
    """Callable clock whose time tests can move."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def products():
    return [
        Product("11050", "Breaker 2x20A", "Protecciones", 7.0, 8.0, 10.0),
        Product("10050", "Protector de voltaje", "Protectores", 3.5, 4.0, 5.0),
        Product("10000", "Router WiFi", "Redes", 20.0, 0.0, 25.0),
    ]


@pytest.fixture
def catalog(products):
    return Catalog.from_products(products)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def rate_source():
    return FakeRateSource()


@pytest.fixture
def clock():
    return FixedClock(datetime(2025, 3, 10, 10, 0, tzinfo=CARACAS))
