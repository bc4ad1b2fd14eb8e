"""
Quotation building.

``QuoteEngine.build_quote`` turns command arguments into either a rendered
quotation or guidance text. A rendered quotation is remembered per
requester (for ``/enviar``) and counted in the bot statistics.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from . import messages
from .catalog import Catalog
from .config import TierLabels
from .models import BotStats, ClientTier, InvalidEntry, LineItem, QuoteMode, resolve_tier
from .pricing import PricingResolver
from .rates import RateCache
from .store import KeyValueStore, MemoryStore, read_json, save_json
from .tokens import TokenParser

logger = logging.getLogger(__name__)

COMMAND_FOR_MODE = {QuoteMode.LIST: "precio", QuoteMode.RAW: "divisas"}


@dataclass
class QuoteResult:
    """Outcome of a quotation request."""

    text: str
    is_quote: bool
    tier: ClientTier
    mode: QuoteMode = QuoteMode.LIST
    items: list[LineItem] = field(default_factory=list)
    invalid: list[InvalidEntry] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    grand_total: float = 0.0
    total_units: int = 0
    dollar_rate: float | None = None


class StatsRecorder:
    """Quotation counters persisted to a JSON document on every increment."""

    def __init__(
        self,
        path: Path | None = None,
        history_limit: int = 0,
        clock: Callable[[], datetime] | None = None,
    ):
        self.path = path
        self.history_limit = history_limit
        self.clock = clock or datetime.now
        data = read_json(path, default=None) if path else None
        self.stats = BotStats.from_dict(data) if isinstance(data, dict) else BotStats()

    def record(self, mode: QuoteMode) -> None:
        self.stats.record(mode.value, self.clock(), self.history_limit)
        if self.path is not None:
            save_json(self.path, self.stats.to_dict())
        logger.debug(f"Recorded {mode.value} (total {self.stats.total_quotes})")


class QuoteEngine:
    """Builds quotations from product codes and quantities."""

    def __init__(
        self,
        catalog: Catalog,
        pricing: PricingResolver,
        tiers: KeyValueStore,
        rates: RateCache | None = None,
        last_quotes: KeyValueStore | None = None,
        stats: StatsRecorder | None = None,
        default_tier: ClientTier = ClientTier.GENERAL,
        max_quantity: int = 1000,
        max_items: int = 20,
        labels: TierLabels | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.catalog = catalog
        self.pricing = pricing
        self.tiers = tiers
        self.rates = rates
        self.last_quotes = last_quotes if last_quotes is not None else MemoryStore()
        self.stats = stats or StatsRecorder()
        self.default_tier = default_tier
        self.max_items = max_items
        self.labels = labels or TierLabels()
        self.clock = clock or (rates.now if rates else datetime.now)
        self.parser = TokenParser(lambda code: code in self.catalog, max_quantity)

    def tier_for(self, client_id: str) -> ClientTier:
        """Stored tier of a client, falling back to the default tier."""
        stored = self.tiers.get(client_id)
        return resolve_tier(stored) or self.default_tier

    async def build_quote(
        self,
        raw_args: Iterable[str],
        requester: str,
        tier_override: ClientTier | None = None,
        mode: QuoteMode = QuoteMode.LIST,
    ) -> QuoteResult:
        tier = tier_override or self.tier_for(requester)
        command = COMMAND_FOR_MODE[mode]
        parsed = self.parser.parse(raw_args)

        if not parsed.items:
            if parsed.invalid:
                text = messages.quote_error(parsed.invalid, command)
            else:
                text = messages.no_products(self._title(mode))
            return QuoteResult(text, False, tier, mode, invalid=parsed.invalid)

        if len(parsed.items) > self.max_items:
            logger.info(f"Rejected quotation with {len(parsed.items)} items from {requester}")
            text = messages.too_many_items(len(parsed.items), self.max_items, command)
            return QuoteResult(text, False, tier, mode, parsed.items, parsed.invalid)

        result = QuoteResult("", True, tier, mode, parsed.items, parsed.invalid)

        if mode is QuoteMode.LIST and self.rates is not None:
            snapshot = await self.rates.get_rates()
            if snapshot.has_dollar:
                result.dollar_rate = snapshot.dollar

        lines: list[str] = []
        for item in parsed.items:
            product = self.catalog.by_code(item.code)
            if product is None:
                result.not_found.append(item.code)
                continue
            unit = self.pricing.unit_price(product, tier, mode)
            subtotal = unit * item.quantity
            result.grand_total += subtotal
            result.total_units += item.quantity
            lines.append(
                f"✅ *Producto:* {product.description}\n"
                f"*Código:* {item.code}\n"
                f"*Cantidad:* {item.quantity}\n"
                f"*Precio Unitario:* {self.pricing.format_price(unit)}\n"
                f"*Subtotal:* ${subtotal:.2f}\n"
            )

        result.text = self._render(result, lines, tier_override is not None)

        if result.total_units:
            self.last_quotes.set(requester, result.text)
            self.stats.record(mode)
            logger.info(
                f"Quotation for {requester}: {len(lines)} item(s), "
                f"total ${result.grand_total:.2f} ({tier.value}, {mode.value})"
            )
        return result

    def _title(self, mode: QuoteMode) -> str:
        if mode is QuoteMode.RAW:
            return "💱 *Cotización en Divisas*"
        return "📝 *Cotización Rápida*"

    def _render(self, result: QuoteResult, lines: list[str], show_tier: bool) -> str:
        parts = [self._title(result.mode)]
        parts.append(f"*Fecha:* {self.clock().strftime('%d/%m/%Y')}")
        if show_tier or result.mode is QuoteMode.RAW:
            parts.append(f"*Tipo de Cliente:* {result.tier.label(self.labels).upper()}")
        parts.append("")
        parts.append(messages.SEPARATOR)
        parts.append("")
        parts.extend(lines)
        parts.append(messages.SEPARATOR)
        parts.append(f"*Total de la Cotización:* ${result.grand_total:.2f}")
        if result.dollar_rate is not None:
            parts.append(f"*Tasa BCV (USD):* {result.dollar_rate:.2f} Bs.")
            parts.append(f"*Total Bs:* {result.grand_total * result.dollar_rate:.2f} Bs.")
        parts.append(f"*Total de Artículos:* {result.total_units}")
        parts.append(messages.SEPARATOR)
        parts.append("")
        if result.invalid:
            described = [messages.describe_invalid(e) for e in result.invalid]
            parts.append(f"❌ *Argumentos con formato inválido (ignorados):*\n{messages.bullet_list(described)}")
            parts.append("")
        if result.not_found:
            parts.append(f"❌ *Productos no encontrados:*\n{', '.join(result.not_found)}")
            parts.append("")
        parts.append("Los Precios *NO INCLUYEN IVA*")
        return "\n".join(parts)
