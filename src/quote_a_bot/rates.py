"""
BCV exchange rates with a publish-window aware cache.

The central bank (BCV) posts the next day's rates on its home page in the
afternoon, business-local time. Rates are cached in a single snapshot that
is persisted to disk and refreshed only when it could be stale:

1. nothing cached yet;
2. the snapshot is from an earlier local date;
3. we are inside the publish window (15:00-18:00 by default);
4. we are past the window and the snapshot predates it (the process was
   idle through the window).

A refresh commits only when both currencies were fetched successfully.
"""

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, tzinfo
from pathlib import Path
from typing import Protocol
from zoneinfo import ZoneInfo

import httpx
from bs4 import BeautifulSoup

from .errors import RateFetchError
from .models import RateSnapshot
from .store import read_json, save_json

logger = logging.getLogger(__name__)

BCV_URL = "https://www.bcv.org.ve/"

DOLLAR = "dollar"
EURO = "euro"

# Position of each currency among the rate boxes on the BCV home page
RATE_BOX_SELECTOR = "div.col-sm-6.col-xs-6.centrado"
CURRENCY_POSITIONS = {EURO: 0, DOLLAR: 4}


def parse_rate_text(raw: str) -> float:
    """
    Parse a rate written with ``.`` thousands separators and a ``,`` decimal mark.

    ``"1.234,5678"`` → ``1234.57``. Raises ValueError for anything else.
    """
    cleaned = raw.strip().replace(".", "").replace(",", ".")
    value = float(cleaned)
    if not math.isfinite(value):
        raise ValueError(f"Not a finite number: {raw!r}")
    return round(value, 2)


def extract_rate(html: str, position: int) -> float:
    """Read the rate in the ``position``-th rate box of the page."""
    soup = BeautifulSoup(html, "html.parser")
    boxes = soup.select(RATE_BOX_SELECTOR)
    if len(boxes) <= position:
        raise ValueError(f"Rate box {position} not found ({len(boxes)} present)")
    strong = boxes[position].find("strong")
    if strong is None:
        raise ValueError(f"Rate box {position} has no value")
    return parse_rate_text(strong.get_text())


class RateSource(Protocol):
    async def fetch(self, currency: str) -> float: ...


class BcvRateSource:
    """Scrapes one currency rate from the BCV home page."""

    def __init__(
        self,
        url: str = BCV_URL,
        timeout_seconds: float = 15.0,
        verify_tls: bool = False,
    ):
        self.url = url
        self.timeout = timeout_seconds
        self.verify_tls = verify_tls

    async def fetch(self, currency: str) -> float:
        """
        Fetch the current rate for ``currency`` (``"dollar"`` or ``"euro"``).

        Raises:
            RateFetchError: on HTTP failure or when the value cannot be parsed
        """
        position = CURRENCY_POSITIONS.get(currency)
        if position is None:
            raise RateFetchError(currency, "unsupported currency")

        logger.debug(f"Fetching {currency} rate from {self.url}")

        async with httpx.AsyncClient(timeout=self.timeout, verify=self.verify_tls) as client:
            try:
                response = await client.get(self.url, follow_redirects=True)
                response.raise_for_status()
            except httpx.HTTPError as e:
                logger.warning(f"HTTP error fetching {currency} rate: {e}")
                raise RateFetchError(currency, str(e)) from e

        try:
            return extract_rate(response.text, position)
        except ValueError as e:
            logger.warning(f"Could not parse {currency} rate: {e}")
            raise RateFetchError(currency, str(e)) from e


def should_refresh(
    now: datetime,
    snapshot: RateSnapshot | None,
    window_start: int = 15,
    window_end: int = 18,
) -> bool:
    """
    Decide whether the cached snapshot must be refreshed.

    ``now`` and ``snapshot.last_updated`` must already be in business-local
    time. Rules are evaluated in priority order.
    """
    if snapshot is None or snapshot.last_updated is None:
        return True

    last = snapshot.last_updated
    if now.date() != last.date():
        return True

    if window_start <= now.hour < window_end:
        return True

    if now.hour >= window_end and last.hour < window_start:
        return True

    return False


def _valid_rate(value: object) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value > 0
    )


class RateCache:
    """Process-wide rate snapshot, refreshed on demand."""

    def __init__(
        self,
        source: RateSource,
        path: Path | None = None,
        timezone: str | tzinfo = "America/Caracas",
        clock: Callable[[], datetime] | None = None,
        window_start: int = 15,
        window_end: int = 18,
    ):
        self.source = source
        self.path = path
        self.tz = ZoneInfo(timezone) if isinstance(timezone, str) else timezone
        self.clock = clock or (lambda: datetime.now(UTC))
        self.window_start = window_start
        self.window_end = window_end
        self.snapshot = RateSnapshot()

    def now(self) -> datetime:
        """Current time in business-local time."""
        return self.clock().astimezone(self.tz)

    def local(self, snapshot: RateSnapshot) -> RateSnapshot:
        """Copy of ``snapshot`` with its timestamp in business-local time."""
        if snapshot.last_updated is None:
            return replace(snapshot)
        last = snapshot.last_updated
        if last.tzinfo is None:
            last = last.replace(tzinfo=self.tz)
        return replace(snapshot, last_updated=last.astimezone(self.tz))

    def load(self) -> RateSnapshot:
        """Load the persisted snapshot (once, at startup)."""
        if self.path is None:
            return self.snapshot
        data = read_json(self.path, default=None)
        if not data:
            logger.info(f"No cached rates at {self.path}, will fetch on first request")
            return self.snapshot
        try:
            snapshot = self.local(RateSnapshot.from_dict(data))
        except (TypeError, ValueError, AttributeError):
            logger.exception(f"Ignoring malformed rate cache {self.path}")
            self.snapshot = RateSnapshot()
            return self.snapshot

        if not (_valid_rate(snapshot.dollar) and _valid_rate(snapshot.euro)):
            logger.warning(
                f"Ignoring rate cache {self.path} with invalid rates: "
                f"dollar={snapshot.dollar!r} euro={snapshot.euro!r}"
            )
            self.snapshot = RateSnapshot()
            return self.snapshot

        self.snapshot = snapshot
        logger.info(f"Loaded cached rates from {self.path}")
        return self.snapshot

    def needs_refresh(self) -> bool:
        return should_refresh(
            self.now(),
            self.local(self.snapshot),
            self.window_start,
            self.window_end,
        )

    async def get_rates(self) -> RateSnapshot:
        """Current rates, refreshing first when the snapshot may be stale."""
        if self.needs_refresh():
            return await self.refresh()
        logger.debug("Using cached rates")
        return replace(self.snapshot)

    async def _fetch(self, currency: str) -> float:
        value = await self.source.fetch(currency)
        if not _valid_rate(value):
            raise RateFetchError(currency, f"non-numeric value {value!r}")
        return float(value)

    async def refresh(self) -> RateSnapshot:
        """
        Fetch both rates concurrently and commit only if both succeed.

        On failure the previous snapshot is kept (in memory and on disk) and
        returned when it holds values; otherwise the unavailable sentinel.
        """
        logger.info("Fetching new BCV rates")
        dollar, euro = await asyncio.gather(
            self._fetch(DOLLAR),
            self._fetch(EURO),
            return_exceptions=True,
        )

        failures = [r for r in (dollar, euro) if isinstance(r, BaseException)]
        if not failures:
            self.snapshot = RateSnapshot(dollar=dollar, euro=euro, last_updated=self.now())
            if self.path is not None:
                save_json(self.path, self.snapshot.to_dict())
            logger.info(f"Rates updated: dollar={dollar:.2f} euro={euro:.2f}")
            return replace(self.snapshot)

        for failure in failures:
            logger.warning(f"Rate fetch failed: {failure}")

        if self.snapshot.has_dollar and self.snapshot.has_euro:
            logger.warning("Keeping previous rates after failed refresh")
            return replace(self.snapshot)
        return RateSnapshot.unavailable()
