"""
Message handling for quote-a-bot.

``QuoteBot.handle`` takes one inbound message to completion: it filters out
messages the bot must not answer, greets first-time clients, logs the
conversation and sends the reply produced by the command dispatcher or the
keyword auto-responses.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from . import messages
from .approvals import AgentDirectory, ApprovalWorkflow
from .catalog import Catalog
from .commands import CommandDispatcher, CommandResponse, is_command
from .config import BotConfig
from .models import ClientTier, resolve_tier
from .pricing import PricingResolver
from .quotes import QuoteEngine, StatsRecorder
from .rates import BcvRateSource, RateCache
from .store import JsonFileStore, KeyValueStore, MemoryStore, read_json, save_json
from .transport import InboundMessage, Reply, Transport

logger = logging.getLogger(__name__)

ECHO_ID_LIMIT = 100


class ConversationLog:
    """Per-contact JSON files with every message exchanged."""

    def __init__(self, directory: Path, enabled: bool = True):
        self.directory = directory
        self.enabled = enabled

    def path_for(self, contact_id: str) -> Path:
        safe = "".join(c for c in contact_id if c.isalnum() or c in "-_.@")
        return self.directory / f"{safe.lstrip('+') or 'unknown'}.json"

    def append(self, message: InboundMessage, body: str, from_bot: bool) -> None:
        if not self.enabled:
            return
        path = self.path_for(message.sender_id)
        entries = read_json(path, default=[])
        if not isinstance(entries, list):
            entries = []
        entries.append(
            {
                "timestamp": datetime.now().isoformat(),
                "contact": message.display_name or message.sender_id,
                "message": body,
                "is_from_bot": from_bot,
            }
        )
        save_json(path, entries)


class QuoteBot:
    """Ties the transport to the command layer."""

    def __init__(
        self,
        config: BotConfig,
        dispatcher: CommandDispatcher,
        transport: Transport,
        tiers: KeyValueStore,
        conversations: ConversationLog | None = None,
        started_at: datetime | None = None,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.transport = transport
        self.tiers = tiers
        self.conversations = conversations or ConversationLog(
            config.storage.conversations_dir, enabled=False
        )
        self.started_at = started_at or datetime.now()
        self.default_tier = resolve_tier(config.pricing.default_tier, config.pricing.labels) or ClientTier.GENERAL
        self.ready = False
        # Ids of messages sent to agents; oldest dropped if their echo never arrives
        self._echo_ids = MemoryStore(ECHO_ID_LIMIT)

    @classmethod
    def from_config(cls, config: BotConfig, transport: Transport) -> "QuoteBot":
        """Wire catalog, rates, stores and workflows from configuration."""
        storage = config.storage
        labels = config.pricing.labels

        catalog = Catalog(config.catalog.excel_path, config.catalog.sheet_name)
        catalog.load()

        rates = RateCache(
            BcvRateSource(
                config.rates.source_url,
                config.rates.timeout_seconds,
                config.rates.verify_tls,
            ),
            path=storage.rate_cache_path,
            timezone=config.rates.timezone,
            window_start=config.rates.publish_window_start,
            window_end=config.rates.publish_window_end,
        )
        rates.load()

        tiers = JsonFileStore(storage.client_tiers_path)
        default_tier = resolve_tier(config.pricing.default_tier, labels) or ClientTier.GENERAL

        engine = QuoteEngine(
            catalog,
            PricingResolver(config.pricing.multiplier),
            tiers,
            rates=rates,
            last_quotes=MemoryStore(storage.last_quote_limit or None),
            stats=StatsRecorder(storage.stats_path, storage.stats_history_limit),
            default_tier=default_tier,
            max_quantity=config.pricing.max_quote_quantity,
            max_items=config.pricing.max_quote_items,
            labels=labels,
        )
        approvals = ApprovalWorkflow(
            AgentDirectory.from_file(storage.agents_path),
            tiers,
            transport,
            labels=labels,
        )
        dispatcher = CommandDispatcher(config, catalog, engine, approvals, transport, rates)
        return cls(
            config,
            dispatcher,
            transport,
            tiers,
            ConversationLog(storage.conversations_dir, storage.log_conversations),
        )

    @property
    def catalog(self) -> Catalog:
        return self.dispatcher.catalog

    def uptime_seconds(self) -> float:
        return (datetime.now() - self.started_at).total_seconds()

    def should_ignore(self, message: InboundMessage) -> bool:
        """True for messages the bot must not answer."""
        if message.is_status:
            return True
        if message.message_id and self._echo_ids.delete(message.message_id):
            logger.info(f"Ignoring echo of message sent to an agent: {message.message_id}")
            return True
        if message.timestamp < self.started_at:
            logger.info(f"Ignoring message from {message.sender_id} sent before startup")
            return True
        if message.from_me or message.is_group:
            return True
        return False

    async def handle(self, message: InboundMessage) -> list[Reply]:
        """Process one message and send the replies; returns what was sent."""
        if self.should_ignore(message):
            return []

        who = message.display_name or message.sender_id
        logger.info(f"Message from {who}: {message.body}")
        replies: list[Reply] = []

        try:
            if message.sender_id not in self.tiers:
                replies.append(
                    Reply(message.sender_id, messages.welcome(self.config.catalog.version))
                )
                self.tiers.set(message.sender_id, self.default_tier.value)
                logger.info(f"New client {who}, assigned tier {self.default_tier.value}")

            self.conversations.append(message, message.body, from_bot=False)

            response = await self._respond(message)
            for sent_id in response.sent_message_ids:
                self._echo_ids.set(sent_id, True)
            replies.append(
                Reply(message.sender_id, response.text, response.media, response.filename)
            )

            for reply in replies:
                await self.transport.send(reply)
            logger.info(f"Reply sent to {who}")

            logged = f"[Imagen: {response.text}]" if response.media is not None else response.text
            self.conversations.append(message, logged, from_bot=True)
        except Exception:
            logger.exception(f"Error processing message from {who}")
            return []

        return replies

    async def _respond(self, message: InboundMessage) -> CommandResponse:
        if is_command(message.body):
            command = self.dispatcher.parse(message.body)
            return await self.dispatcher.dispatch(command, message)

        text = messages.auto_response(
            message.body, self.config.catalog.version, self.config.hours
        )
        if text is None:
            text = f"{messages.NOT_UNDERSTOOD}\n\n{messages.HELP}"
        return CommandResponse(text)

    def status(self) -> dict[str, Any]:
        return {
            "ready": self.ready,
            "uptime": self.uptime_seconds(),
            "timestamp": datetime.now().isoformat(),
        }
