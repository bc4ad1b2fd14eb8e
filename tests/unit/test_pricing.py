"""Tests for tier price resolution."""

import pytest

from quote_a_bot.models import ClientTier, Product, QuoteMode
from quote_a_bot.pricing import PricingResolver

PRODUCT = Product("11050", "Breaker 2x20A", "Protecciones", 7.0, 8.0, 10.0)


class TestBasePrice:
    """Test tier price selection."""

    @pytest.mark.parametrize(
        "tier,expected",
        [
            (ClientTier.TIENDA, 7.0),
            (ClientTier.INSTALADOR, 8.0),
            (ClientTier.GENERAL, 10.0),
        ],
    )
    def test_selects_tier_column(self, tier, expected):
        """Should read the price column of the tier."""
        assert PricingResolver().base_price(PRODUCT, tier) == expected

    def test_missing_price_is_zero(self):
        """Should return 0.0 when the tier has no price."""
        product = Product("1", "Sin precio", installer_price=0.0)
        assert PricingResolver().base_price(product, ClientTier.INSTALADOR) == 0.0


class TestModes:
    """Test list and raw pricing."""

    def test_list_applies_multiplier(self):
        """Should multiply list prices by the global multiplier."""
        pricing = PricingResolver(multiplier=1.5)
        assert pricing.unit_price(PRODUCT, ClientTier.GENERAL, QuoteMode.LIST) == pytest.approx(15.0)

    def test_raw_ignores_multiplier(self):
        """Should quote the stored price in raw mode."""
        pricing = PricingResolver(multiplier=1.5)
        assert pricing.unit_price(PRODUCT, ClientTier.TIENDA, QuoteMode.RAW) == 7.0

    def test_raw_quotes_restricted_to_trade_tiers(self):
        """Should allow raw quotes for store and installer clients only."""
        assert PricingResolver.raw_quote_allowed(ClientTier.TIENDA)
        assert PricingResolver.raw_quote_allowed(ClientTier.INSTALADOR)
        assert not PricingResolver.raw_quote_allowed(ClientTier.GENERAL)


class TestFormatPrice:
    """Test price formatting."""

    def test_formats_two_decimals(self):
        """Should render dollars with two decimals."""
        assert PricingResolver().format_price(12.5) == "$12.50"

    def test_unavailable(self):
        """Should say the price is unavailable for zero."""
        assert PricingResolver().format_price(0.0) == "Precio no disponible"
