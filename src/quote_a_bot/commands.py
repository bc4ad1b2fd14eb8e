"""
Slash-command parsing and dispatch.

Every command word maps to a member of the closed ``CommandKind`` set;
anything else is ``CommandKind.UNKNOWN``. The dispatcher has one handler
per kind and refuses to start when a kind is missing one.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from . import messages
from .approvals import ApprovalWorkflow
from .catalog import Catalog
from .config import BotConfig, TierLabels
from .models import ClientTier, QuoteMode, RateSnapshot, resolve_tier
from .quotes import QuoteEngine
from .rates import RateCache
from .transport import InboundMessage, Transport

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 20
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")


class CommandKind(str, Enum):
    HELP = "help"
    INFO = "info"
    HOURS = "hours"
    PRODUCTS = "products"
    CATEGORIES = "categories"
    SEARCH = "search"
    PRICE = "price"
    PRICE_GENERAL = "price_general"
    RAW_PRICE = "raw_price"
    PRICING_INFO = "pricing_info"
    REQUEST_TIER = "request_tier"
    APPROVE = "approve"
    REJECT = "reject"
    STATS = "stats"
    SEND = "send"
    PHOTO = "photo"
    RATES = "rates"
    UNKNOWN = "unknown"


COMMAND_ALIASES: dict[str, CommandKind] = {
    "help": CommandKind.HELP,
    "ayuda": CommandKind.HELP,
    "info": CommandKind.INFO,
    "informacion": CommandKind.INFO,
    "horario": CommandKind.HOURS,
    "horarios": CommandKind.HOURS,
    "producto": CommandKind.PRODUCTS,
    "productos": CommandKind.PRODUCTS,
    "categoria": CommandKind.CATEGORIES,
    "categorias": CommandKind.CATEGORIES,
    "categoría": CommandKind.CATEGORIES,
    "categorías": CommandKind.CATEGORIES,
    "buscar": CommandKind.SEARCH,
    "search": CommandKind.SEARCH,
    "precio": CommandKind.PRICE,
    "precios": CommandKind.PRICE,
    "preciog": CommandKind.PRICE_GENERAL,
    "divisa": CommandKind.RAW_PRICE,
    "divisas": CommandKind.RAW_PRICE,
    "codigo": CommandKind.PRICING_INFO,
    "código": CommandKind.PRICING_INFO,
    "aprobar": CommandKind.APPROVE,
    "rechazar": CommandKind.REJECT,
    "stats": CommandKind.STATS,
    "enviar": CommandKind.SEND,
    "foto": CommandKind.PHOTO,
    "imagen": CommandKind.PHOTO,
    "bcv": CommandKind.RATES,
}


@dataclass
class Command:
    """A parsed slash command."""

    kind: CommandKind
    name: str
    args: list[str] = field(default_factory=list)
    tier: ClientTier | None = None  # set for REQUEST_TIER


@dataclass
class CommandResponse:
    """What a handler wants sent back to the sender."""

    text: str
    media: bytes | None = None
    filename: str | None = None
    # Ids of messages sent to third parties whose echoes must be ignored
    sent_message_ids: list[str] = field(default_factory=list)


def is_command(text: str) -> bool:
    return text.strip().startswith("/")


def find_image(images_dir: Path, code: str) -> Path | None:
    for ext in IMAGE_EXTENSIONS:
        candidate = images_dir / f"{code}{ext}"
        if candidate.exists():
            return candidate
    return None


def parse_command(text: str, labels: TierLabels | None = None) -> Command:
    """
    Parse ``/word arg1 arg2 ...``.

    Tier names (canonical, English alias or configured label) are tier-change
    requests; unrecognised words give ``CommandKind.UNKNOWN``.
    """
    parts = text.strip().split()
    if not parts:
        return Command(CommandKind.UNKNOWN, "")
    name = parts[0].lstrip("/").lower()
    args = parts[1:]

    kind = COMMAND_ALIASES.get(name)
    if kind is not None:
        return Command(kind, name, args)

    tier = resolve_tier(name, labels)
    if tier is not None:
        return Command(CommandKind.REQUEST_TIER, name, args, tier=tier)

    return Command(CommandKind.UNKNOWN, name, args)


Handler = Callable[[Command, InboundMessage], Awaitable[CommandResponse]]


class CommandDispatcher:
    """Runs the handler for each parsed command."""

    def __init__(
        self,
        config: BotConfig,
        catalog: Catalog,
        engine: QuoteEngine,
        approvals: ApprovalWorkflow,
        transport: Transport,
        rates: RateCache | None = None,
    ):
        self.config = config
        self.catalog = catalog
        self.engine = engine
        self.approvals = approvals
        self.transport = transport
        self.rates = rates
        self.labels = config.pricing.labels

        self.handlers: dict[CommandKind, Handler] = {
            CommandKind.HELP: self.handle_help,
            CommandKind.INFO: self.handle_info,
            CommandKind.HOURS: self.handle_hours,
            CommandKind.PRODUCTS: self.handle_products,
            CommandKind.CATEGORIES: self.handle_categories,
            CommandKind.SEARCH: self.handle_search,
            CommandKind.PRICE: self.handle_price,
            CommandKind.PRICE_GENERAL: self.handle_price_general,
            CommandKind.RAW_PRICE: self.handle_raw_price,
            CommandKind.PRICING_INFO: self.handle_pricing_info,
            CommandKind.REQUEST_TIER: self.handle_request_tier,
            CommandKind.APPROVE: self.handle_approve,
            CommandKind.REJECT: self.handle_reject,
            CommandKind.STATS: self.handle_stats,
            CommandKind.SEND: self.handle_send,
            CommandKind.PHOTO: self.handle_photo,
            CommandKind.RATES: self.handle_rates,
            CommandKind.UNKNOWN: self.handle_unknown,
        }
        missing = [kind.value for kind in CommandKind if kind not in self.handlers]
        if missing:
            raise ValueError(f"No handler for command kind(s): {', '.join(missing)}")

    def parse(self, text: str) -> Command:
        return parse_command(text, self.labels)

    async def dispatch(self, command: Command, message: InboundMessage) -> CommandResponse:
        logger.info(f"Command /{command.name} ({command.kind.value}) from {message.sender_id}")
        return await self.handlers[command.kind](command, message)

    # -------------------------------------------------------------------------
    # Information
    # -------------------------------------------------------------------------

    async def handle_help(self, command: Command, message: InboundMessage) -> CommandResponse:
        return CommandResponse(messages.HELP)

    async def handle_unknown(self, command: Command, message: InboundMessage) -> CommandResponse:
        return CommandResponse(f"{messages.UNKNOWN_COMMAND}\n\n{messages.HELP}")

    async def handle_info(self, command: Command, message: InboundMessage) -> CommandResponse:
        return CommandResponse(messages.info(self.config.company, self.config.hours))

    async def handle_hours(self, command: Command, message: InboundMessage) -> CommandResponse:
        return CommandResponse(messages.hours(self.config.hours))

    async def handle_products(self, command: Command, message: InboundMessage) -> CommandResponse:
        return CommandResponse(messages.products(self.catalog.stats(), self.config.catalog.version))

    async def handle_categories(self, command: Command, message: InboundMessage) -> CommandResponse:
        return CommandResponse(messages.categories(self.catalog.categories()))

    async def handle_search(self, command: Command, message: InboundMessage) -> CommandResponse:
        if not command.args:
            return CommandResponse(messages.SEARCH_USAGE)

        term = " ".join(command.args)
        results = self.catalog.search(term)
        if not results:
            return CommandResponse(messages.search_empty(term))

        tier = self.engine.tier_for(message.sender_id)
        pricing = self.engine.pricing
        shown = [
            (product, pricing.format_price(pricing.unit_price(product, tier, QuoteMode.LIST)))
            for product in results[:SEARCH_RESULT_LIMIT]
        ]
        return CommandResponse(messages.search_results(term, shown, len(results)))

    async def handle_pricing_info(self, command: Command, message: InboundMessage) -> CommandResponse:
        tier = self.engine.tier_for(message.sender_id)
        return CommandResponse(messages.pricing_info(tier.label(self.labels)))

    async def handle_rates(self, command: Command, message: InboundMessage) -> CommandResponse:
        if self.rates is None:
            return CommandResponse(messages.rates(RateSnapshot.unavailable()))
        return CommandResponse(messages.rates(await self.rates.get_rates()))

    async def handle_stats(self, command: Command, message: InboundMessage) -> CommandResponse:
        stats = self.engine.stats.stats
        return CommandResponse(
            messages.stats(
                self.catalog.stats(),
                total_quotes=stats.total_quotes,
                list_quotes=stats.count(QuoteMode.LIST.value),
                raw_quotes=stats.count(QuoteMode.RAW.value),
                history_size=len(stats.history),
                multiplier=self.engine.pricing.multiplier,
                command_count=len(COMMAND_ALIASES) + len(ClientTier),
            )
        )

    # -------------------------------------------------------------------------
    # Quotations
    # -------------------------------------------------------------------------

    async def handle_price(self, command: Command, message: InboundMessage) -> CommandResponse:
        if not command.args:
            return CommandResponse(messages.quote_usage("precio"))
        result = await self.engine.build_quote(command.args, message.sender_id)
        return CommandResponse(result.text)

    async def handle_price_general(self, command: Command, message: InboundMessage) -> CommandResponse:
        if not command.args:
            return CommandResponse(messages.quote_usage("preciog"))
        result = await self.engine.build_quote(
            command.args, message.sender_id, tier_override=ClientTier.GENERAL
        )
        return CommandResponse(result.text)

    async def handle_raw_price(self, command: Command, message: InboundMessage) -> CommandResponse:
        tier = self.engine.tier_for(message.sender_id)
        if not self.engine.pricing.raw_quote_allowed(tier):
            logger.info(f"/divisas denied to {message.sender_id} ({tier.value})")
            return CommandResponse(messages.RAW_DENIED)
        if not command.args:
            return CommandResponse(
                messages.quote_usage("divisas", "💱 *Consulta de Precios en Divisas*")
            )
        result = await self.engine.build_quote(command.args, message.sender_id, mode=QuoteMode.RAW)
        return CommandResponse(result.text)

    async def handle_send(self, command: Command, message: InboundMessage) -> CommandResponse:
        agents = self.approvals.agents
        if not command.args:
            return CommandResponse(messages.send_usage(agents.names()))

        name = command.args[0].lower()
        agent_id = agents.get(name)
        if agent_id is None:
            return CommandResponse(messages.agent_not_found(name))

        last_quote = self.engine.last_quotes.get(message.sender_id)
        if not last_quote:
            return CommandResponse(messages.NO_LAST_QUOTE)

        tier = self.engine.tier_for(message.sender_id)
        text = messages.quote_for_agent(
            message.display_name or message.sender_id,
            message.sender_id,
            tier.label(self.labels),
            last_quote,
        )
        try:
            sent_id = await self.transport.send_text(agent_id, text)
        except Exception:
            logger.exception(f"Could not send quotation to agent {name}")
            return CommandResponse(messages.SEND_FAILED)

        self.engine.last_quotes.delete(message.sender_id)
        logger.info(f"Quotation of {message.sender_id} sent to agent {name}")
        return CommandResponse(messages.quote_sent(name), sent_message_ids=[sent_id])

    async def handle_photo(self, command: Command, message: InboundMessage) -> CommandResponse:
        if not command.args:
            return CommandResponse(messages.PHOTO_USAGE)

        code = command.args[0]
        product = self.catalog.by_code(code)
        if product is None:
            return CommandResponse(messages.product_not_found(code))

        image_path = find_image(self.config.catalog.images_dir, code)
        if image_path is None:
            return CommandResponse(messages.no_image(product))

        try:
            data = image_path.read_bytes()
        except OSError:
            logger.exception(f"Could not read image {image_path}")
            return CommandResponse(messages.PHOTO_FAILED)
        return CommandResponse(messages.photo_caption(product), media=data, filename=image_path.name)

    # -------------------------------------------------------------------------
    # Tier approval
    # -------------------------------------------------------------------------

    async def handle_request_tier(self, command: Command, message: InboundMessage) -> CommandResponse:
        outcome = await self.approvals.request(message.sender_id, command.tier, message.display_name)
        return CommandResponse(outcome.message)

    async def handle_approve(self, command: Command, message: InboundMessage) -> CommandResponse:
        if not self.approvals.agents.is_agent(message.sender_id):
            return CommandResponse(messages.UNAUTHORIZED)
        if len(command.args) < 2:
            return CommandResponse(messages.APPROVE_USAGE)

        client_id, tier_name = command.args[0], command.args[1]
        tier = resolve_tier(tier_name, self.labels)
        if tier is None:
            return CommandResponse(messages.unknown_tier(tier_name))

        outcome = await self.approvals.approve(message.sender_id, client_id, tier)
        return CommandResponse(outcome.message)

    async def handle_reject(self, command: Command, message: InboundMessage) -> CommandResponse:
        if not self.approvals.agents.is_agent(message.sender_id):
            return CommandResponse(messages.UNAUTHORIZED)
        if not command.args:
            return CommandResponse(messages.REJECT_USAGE)

        outcome = await self.approvals.reject(message.sender_id, command.args[0])
        return CommandResponse(outcome.message)
