"""Tests for inbound message handling."""

import json
from datetime import datetime, timedelta

import pytest

from quote_a_bot.approvals import AgentDirectory, ApprovalWorkflow
from quote_a_bot.bot import ECHO_ID_LIMIT, ConversationLog, QuoteBot
from quote_a_bot.commands import CommandDispatcher
from quote_a_bot.config import BotConfig
from quote_a_bot.pricing import PricingResolver
from quote_a_bot.quotes import QuoteEngine
from quote_a_bot.store import MemoryStore
from quote_a_bot.transport import InboundMessage

AGENT = "584140000001"
CLIENT = "584240000009"

STARTED = datetime(2025, 3, 10, 9, 0)


@pytest.fixture
def config(tmp_path):
    config = BotConfig()
    config.storage.data_dir = tmp_path / "data"
    return config


@pytest.fixture
def tiers():
    return MemoryStore()


@pytest.fixture
def bot(config, catalog, tiers, transport):
    engine = QuoteEngine(catalog, PricingResolver(), tiers)
    approvals = ApprovalWorkflow(AgentDirectory({"maria": AGENT}), tiers, transport)
    dispatcher = CommandDispatcher(config, catalog, engine, approvals, transport)
    conversations = ConversationLog(config.storage.conversations_dir)
    return QuoteBot(config, dispatcher, transport, tiers, conversations, started_at=STARTED)


def message(body, sender=CLIENT, **kwargs):
    kwargs.setdefault("timestamp", STARTED + timedelta(minutes=5))
    return InboundMessage(body=body, sender_id=sender, display_name="Ana", **kwargs)


class TestFilters:
    """Test which messages are ignored."""

    @pytest.mark.asyncio
    async def test_old_message(self, bot, transport):
        """Should ignore messages sent before startup."""
        replies = await bot.handle(message("/ayuda", timestamp=STARTED - timedelta(seconds=1)))
        assert replies == []
        assert transport.sent == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flag", ["is_group", "from_me", "is_status"])
    async def test_flagged_messages(self, bot, transport, flag):
        """Should ignore group, own and status messages."""
        replies = await bot.handle(message("/ayuda", **{flag: True}))
        assert replies == []
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_echo_ignored_once(self, bot, tiers):
        """Should drop the echo of a forwarded quotation exactly once."""
        tiers.set(CLIENT, "general")
        await bot.handle(message("/precio 11050"))
        await bot.handle(message("/enviar maria"))
        echo_id, _ = next(bot._echo_ids.items())

        assert await bot.handle(message("forwarded", message_id=echo_id)) == []
        assert echo_id not in bot._echo_ids
        assert await bot.handle(message("/ayuda", message_id=echo_id)) != []

    @pytest.mark.asyncio
    async def test_echo_ids_bounded(self, bot, tiers):
        """Should forget the oldest forwarded ids whose echoes never arrive."""
        tiers.set(CLIENT, "general")
        forwarded = []
        for _ in range(ECHO_ID_LIMIT + 5):
            await bot.handle(message("/precio 11050"))
            await bot.handle(message("/enviar maria"))
            newest, _ = list(bot._echo_ids.items())[-1]
            forwarded.append(newest)

        assert len(bot._echo_ids) == ECHO_ID_LIMIT
        assert forwarded[0] not in bot._echo_ids
        assert forwarded[-1] in bot._echo_ids


class TestFirstContact:
    """Test greeting new clients."""

    @pytest.mark.asyncio
    async def test_welcome_and_default_tier(self, bot, tiers, transport):
        """Should greet, assign the default tier and still answer."""
        replies = await bot.handle(message("/horarios"))
        assert len(replies) == 2
        assert "Bienvenido" in replies[0].text
        assert "Horarios de Atención" in replies[1].text
        assert tiers.get(CLIENT) == "general"
        assert len(transport.texts_to(CLIENT)) == 2

    @pytest.mark.asyncio
    async def test_known_client_not_greeted(self, bot, tiers):
        """Should not greet a client with a stored tier."""
        tiers.set(CLIENT, "tienda")
        replies = await bot.handle(message("/horarios"))
        assert len(replies) == 1
        assert tiers.get(CLIENT) == "tienda"


class TestFreeText:
    """Test keyword auto-responses."""

    @pytest.mark.asyncio
    async def test_keyword(self, bot, tiers):
        """Should answer known keywords."""
        tiers.set(CLIENT, "general")
        replies = await bot.handle(message("tengo un problema con el pedido"))
        assert "Soporte Técnico" in replies[0].text

    @pytest.mark.asyncio
    async def test_not_understood(self, bot, tiers):
        """Should fall back to help for unmatched text."""
        tiers.set(CLIENT, "general")
        replies = await bot.handle(message("xyz"))
        assert "No he entendido" in replies[0].text
        assert "/ayuda" in replies[0].text


class TestConversationLog:
    """Test conversation logging."""

    @pytest.mark.asyncio
    async def test_logs_both_directions(self, bot, config, tiers):
        """Should append the client message and the reply."""
        tiers.set(CLIENT, "general")
        await bot.handle(message("/horarios"))
        path = config.storage.conversations_dir / f"{CLIENT}.json"
        entries = json.loads(path.read_text())
        assert [e["is_from_bot"] for e in entries] == [False, True]
        assert entries[0]["message"] == "/horarios"
        assert entries[0]["contact"] == "Ana"

    def test_disabled(self, tmp_path):
        """Should write nothing when disabled."""
        log = ConversationLog(tmp_path, enabled=False)
        log.append(message("hola"), "hola", from_bot=False)
        assert list(tmp_path.iterdir()) == []


class TestErrors:
    """Test failure handling."""

    @pytest.mark.asyncio
    async def test_send_failure_logged(self, bot, tiers, transport, caplog):
        """Should log and drop a message whose reply cannot be sent."""
        tiers.set(CLIENT, "general")
        transport.unreachable.add(CLIENT)
        assert await bot.handle(message("/ayuda")) == []
        assert "Error processing message" in caplog.text


class TestFromConfig:
    """Test wiring from configuration."""

    @pytest.mark.asyncio
    async def test_wiring(self, tmp_path, transport):
        """Should build a working bot from a data directory and spreadsheet."""
        csv_path = tmp_path / "productos.csv"
        csv_path.write_text(
            "Codigo,Descripcion,Categoria,UsdM,UsdI,UsdG\n11050,Breaker,Protecciones,7,8,10\n",
            encoding="utf-8",
        )
        config = BotConfig()
        config.storage.data_dir = tmp_path / "data"
        config.catalog.excel_path = csv_path

        bot = QuoteBot.from_config(config, transport)
        assert bot.catalog.stats().count == 1
        assert (tmp_path / "data" / "agents.json").exists()

        replies = await bot.handle(message("/productos", timestamp=datetime.now()))
        assert "Total de productos: 1" in replies[-1].text
        assert json.loads((tmp_path / "data" / "client_tiers.json").read_text()) == {CLIENT: "general"}
