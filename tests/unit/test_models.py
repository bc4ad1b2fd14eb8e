"""Tests for domain models and message helpers."""

from datetime import datetime

from quote_a_bot import messages
from quote_a_bot.config import HoursConfig, TierLabels
from quote_a_bot.models import BotStats, ClientTier, InvalidEntry, RateSnapshot, resolve_tier


class TestResolveTier:
    """Test tier name resolution."""

    def test_canonical_and_aliases(self):
        """Should accept Spanish names and English aliases in any case."""
        assert resolve_tier("Tienda") is ClientTier.TIENDA
        assert resolve_tier("STORE") is ClientTier.TIENDA
        assert resolve_tier("installer") is ClientTier.INSTALADOR
        assert resolve_tier("general") is ClientTier.GENERAL

    def test_configured_label(self):
        """Should accept configured labels."""
        labels = TierLabels(instalador="Técnico")
        assert resolve_tier("técnico", labels) is ClientTier.INSTALADOR
        assert ClientTier.INSTALADOR.label(labels) == "Técnico"

    def test_unknown(self):
        """Should return None for unknown names."""
        assert resolve_tier("vip") is None
        assert resolve_tier(None) is None
        assert resolve_tier("") is None


class TestRateSnapshot:
    """Test the rate snapshot."""

    def test_unavailable(self):
        """Should have neither rate."""
        snapshot = RateSnapshot.unavailable()
        assert not snapshot.has_dollar
        assert not snapshot.has_euro
        assert snapshot.is_empty

    def test_dict_round_trip_keeps_timestamp(self):
        """Should serialize timestamps as ISO strings."""
        snapshot = RateSnapshot(36.5, 39.8, datetime(2025, 3, 10, 16, 5))
        data = snapshot.to_dict()
        assert data["last_updated"] == "2025-03-10T16:05:00"
        assert RateSnapshot.from_dict(data) == snapshot


class TestBotStats:
    """Test quotation counters."""

    def test_record(self):
        """Should count per type and keep history."""
        stats = BotStats()
        stats.record("list_quotes", datetime(2025, 3, 10))
        stats.record("list_quotes", datetime(2025, 3, 11))
        assert stats.total_quotes == 2
        assert stats.count("list_quotes") == 2
        assert stats.count("raw_quotes") == 0
        assert stats.history[0] == {"type": "list_quotes", "timestamp": "2025-03-10T00:00:00"}

    def test_from_dict_tolerates_missing_fields(self):
        """Should default missing counters."""
        stats = BotStats.from_dict({})
        assert stats.total_quotes == 0
        assert stats.history == []


class TestMessages:
    """Test message helpers."""

    def test_describe_invalid(self):
        """Should translate invalid entry reasons."""
        assert messages.describe_invalid(InvalidEntry("abc", "not a valid code")) == (
            '"abc" (no es un código válido)'
        )
        assert messages.describe_invalid(InvalidEntry("11050", "invalid quantity: x")) == (
            '"11050" (cantidad inválida: "x")'
        )

    def test_auto_response_order(self):
        """Should prefer greetings over later keyword groups."""
        text = messages.auto_response("Hola, necesito un precio", "1.0", HoursConfig())
        assert "Bienvenido" in text

    def test_auto_response_none(self):
        """Should return None when nothing matches."""
        assert messages.auto_response("zzz", "1.0", HoursConfig()) is None

    def test_rates_unavailable(self):
        """Should say when a rate is unavailable."""
        text = messages.rates(RateSnapshot.unavailable())
        assert "*Dólar:* No disponible" in text
        assert "*Euro:* No disponible" in text
