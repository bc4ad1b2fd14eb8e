"""
CLI runner for quote-a-bot.

Usage:
    python -m quote_a_bot.run [OPTIONS]

    # Chat with the bot from the terminal
    python -m quote_a_bot.run --console

    # Serve the status web app
    python -m quote_a_bot.run --serve

    # Fetch and print today's BCV rates
    python -m quote_a_bot.run --check-rates
"""

import argparse
import asyncio
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import uvicorn

from . import messages
from .bot import QuoteBot
from .config import BotConfig
from .maintenance import create_backup
from .rates import BcvRateSource, RateCache
from .transport import ConsoleTransport
from .web import create_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("quote-a-bot")

LOG_FILE_NAME = "bot.log"


def configure_logging(config: BotConfig, verbose: bool = False) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else config.log_level)

    if config.storage.log_to_file:
        logs_dir = config.storage.logs_dir
        logs_dir.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            logs_dir / LOG_FILE_NAME, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        handler.setFormatter(root.handlers[0].formatter if root.handlers else None)
        root.addHandler(handler)


async def check_rates(config: BotConfig) -> int:
    """Fetch the current rates (through the cache) and print them."""
    cache = RateCache(
        BcvRateSource(config.rates.source_url, config.rates.timeout_seconds, config.rates.verify_tls),
        path=config.storage.rate_cache_path,
        timezone=config.rates.timezone,
        window_start=config.rates.publish_window_start,
        window_end=config.rates.publish_window_end,
    )
    cache.load()
    snapshot = await cache.refresh()
    print(messages.rates(snapshot))
    return 0 if snapshot.has_dollar and snapshot.has_euro else 1


async def run_console(bot: QuoteBot, transport: ConsoleTransport) -> None:
    logger.info("Console mode: type messages, Ctrl-D to quit")
    async for message in transport.messages():
        await bot.handle(message)


async def run_bot(config: BotConfig, console: bool, serve: bool) -> None:
    transport = ConsoleTransport()
    bot = QuoteBot.from_config(config, transport)
    bot.ready = True
    logger.info(f"Catalog: {bot.catalog.stats().count} product(s) from {config.catalog.excel_path}")

    tasks = []
    if serve:
        server = uvicorn.Server(
            uvicorn.Config(create_app(bot), host=config.web.host, port=config.web.port, log_level="info")
        )
        logger.info(f"Status app on http://{config.web.host}:{config.web.port}")
        tasks.append(server.serve())
    if console:
        tasks.append(run_console(bot, transport))

    await asyncio.gather(*tasks)


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="quote-a-bot: product quotation chat bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Talk to the bot in the terminal
    python -m quote_a_bot.run --console

    # Status web app and console together
    python -m quote_a_bot.run --serve --console

    # Use a specific config file
    python -m quote_a_bot.run --config config.yaml --console
        """,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Read messages from stdin and print replies",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the status web app",
    )
    parser.add_argument(
        "--check-rates",
        action="store_true",
        help="Fetch the BCV rates, print them and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    config = BotConfig.load(args.config)
    configure_logging(config, args.verbose)
    logger.info(f"Config loaded from {args.config}")
    logger.info(
        f"Pricing: multiplier={config.pricing.multiplier}, "
        f"default tier={config.pricing.default_tier}, "
        f"max quantity={config.pricing.max_quote_quantity}"
    )

    if args.check_rates:
        return asyncio.run(check_rates(config))

    if not (args.console or args.serve):
        parser.print_help()
        return 0

    if config.storage.backups_enabled and config.storage.data_dir.exists():
        try:
            create_backup(config.storage.data_dir, config.storage.backups_dir)
        except OSError:
            logger.exception("Startup backup failed")

    try:
        asyncio.run(run_bot(config, args.console, args.serve))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    return 0


if __name__ == "__main__":
    sys.exit(main())
