"""
Data models for quote-a-bot.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .config import TierLabels


class ClientTier(str, Enum):
    """Client pricing category."""

    GENERAL = "general"
    TIENDA = "tienda"  # store
    INSTALADOR = "instalador"  # installer

    def label(self, labels: TierLabels) -> str:
        """Configured display label for this tier."""
        return getattr(labels, self.value)


TIER_ALIASES: dict[str, ClientTier] = {
    "general": ClientTier.GENERAL,
    "tienda": ClientTier.TIENDA,
    "store": ClientTier.TIENDA,
    "instalador": ClientTier.INSTALADOR,
    "installer": ClientTier.INSTALADOR,
}


def resolve_tier(value: str | None, labels: TierLabels | None = None) -> ClientTier | None:
    """
    Resolve a tier name, alias or configured label (case-insensitive).

    Returns None for anything unrecognised.
    """
    if not value:
        return None
    key = value.strip().lower()
    if labels is not None:
        for tier in ClientTier:
            if tier.label(labels).lower() == key:
                return tier
    return TIER_ALIASES.get(key)


class QuoteMode(str, Enum):
    """Pricing mode of a quotation."""

    LIST = "list_quotes"  # multiplier applied
    RAW = "raw_quotes"  # negotiated price, no multiplier


@dataclass
class Product:
    """A catalog row. Prices of 0 mean the tier has no price."""

    code: str
    description: str
    category: str = ""
    store_price: float = 0.0
    installer_price: float = 0.0
    general_price: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "description": self.description,
            "category": self.category,
            "store_price": self.store_price,
            "installer_price": self.installer_price,
            "general_price": self.general_price,
        }


@dataclass
class LineItem:
    """A requested product code and quantity."""

    code: str
    quantity: int = 1


@dataclass
class InvalidEntry:
    """A token (or token pair) that could not become a line item."""

    token: str
    reason: str


@dataclass
class RateSnapshot:
    """Cached dollar and euro rates (Bs. per unit) and when they were captured."""

    dollar: float | None = None
    euro: float | None = None
    last_updated: datetime | None = None

    @classmethod
    def unavailable(cls) -> "RateSnapshot":
        """Sentinel returned when no rate has ever been captured."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.last_updated is None

    @property
    def has_dollar(self) -> bool:
        return self.dollar is not None and self.dollar > 0

    @property
    def has_euro(self) -> bool:
        return self.euro is not None and self.euro > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "dollar": self.dollar,
            "euro": self.euro,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RateSnapshot":
        last_updated = data.get("last_updated")
        return cls(
            dollar=data.get("dollar"),
            euro=data.get("euro"),
            last_updated=datetime.fromisoformat(last_updated) if last_updated else None,
        )


@dataclass
class PendingApprovalRequest:
    """An unresolved client tier-change request."""

    client_id: str
    requested_tier: ClientTier
    created_at: datetime
    client_name: str | None = None


@dataclass
class BotStats:
    """Quotation counters with an append-only history."""

    total_quotes: int = 0
    per_type: dict[str, int] = field(default_factory=dict)
    history: list[dict[str, str]] = field(default_factory=list)

    def record(self, quote_type: str, timestamp: datetime, history_limit: int = 0) -> None:
        """Count one quotation; history keeps only the newest entries when limited."""
        self.total_quotes += 1
        self.per_type[quote_type] = self.per_type.get(quote_type, 0) + 1
        self.history.append({"type": quote_type, "timestamp": timestamp.isoformat()})
        if history_limit and len(self.history) > history_limit:
            del self.history[: len(self.history) - history_limit]

    def count(self, quote_type: str) -> int:
        return self.per_type.get(quote_type, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_quotes": self.total_quotes,
            "per_type": dict(self.per_type),
            "history": list(self.history),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BotStats":
        return cls(
            total_quotes=int(data.get("total_quotes", 0) or 0),
            per_type={k: int(v) for k, v in (data.get("per_type") or {}).items()},
            history=list(data.get("history") or []),
        )
