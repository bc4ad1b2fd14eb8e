"""
Tier price resolution.

List prices apply the global multiplier; raw (negotiated) prices are the
stored tier price as-is and are only quoted to store and installer clients.
"""

from .models import ClientTier, Product, QuoteMode

RAW_QUOTE_TIERS = frozenset({ClientTier.TIENDA, ClientTier.INSTALADOR})


class PricingResolver:
    """Maps a (product, tier) pair to a unit price."""

    def __init__(self, multiplier: float = 1.0):
        self.multiplier = multiplier

    def base_price(self, product: Product, tier: ClientTier) -> float:
        """Stored price for the tier; 0.0 when the tier has no price."""
        if tier is ClientTier.TIENDA:
            price = product.store_price
        elif tier is ClientTier.INSTALADOR:
            price = product.installer_price
        else:
            price = product.general_price
        return price if price and price > 0 else 0.0

    def marked_up_price(self, product: Product, tier: ClientTier) -> float:
        return self.base_price(product, tier) * self.multiplier

    def unit_price(self, product: Product, tier: ClientTier, mode: QuoteMode) -> float:
        if mode is QuoteMode.RAW:
            return self.base_price(product, tier)
        return self.marked_up_price(product, tier)

    def format_price(self, price: float) -> str:
        return f"${price:.2f}" if price > 0 else "Precio no disponible"

    @staticmethod
    def raw_quote_allowed(tier: ClientTier) -> bool:
        return tier in RAW_QUOTE_TIERS
