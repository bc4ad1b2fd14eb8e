"""
Housekeeping for the bot's data directory.

Log cleanup, conversation export, backups and a summary of what is on disk.
Used by ``scripts/bot_utils.py``.
"""

import json
import logging
import shutil
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path

from .store import read_json, write_json

logger = logging.getLogger(__name__)

STATE_FILES = ("client_tiers.json", "bot_stats.json", "rate_cache.json", "agents.json")


def clean_old_logs(logs_dir: Path, days: int = 7, now: datetime | None = None) -> int:
    """Delete log files last modified more than ``days`` ago. Returns the count."""
    if not logs_dir.exists():
        logger.info(f"No logs to clean in {logs_dir}")
        return 0

    cutoff = (now or datetime.now()) - timedelta(days=days)
    removed = 0
    for path in logs_dir.iterdir():
        if not path.is_file():
            continue
        if datetime.fromtimestamp(path.stat().st_mtime) < cutoff:
            path.unlink()
            removed += 1

    logger.info(f"Removed {removed} log file(s) older than {days} day(s)")
    return removed


def export_conversations(conversations_dir: Path, output: Path) -> int:
    """
    Merge every per-contact conversation file into one JSON document.

    Returns the number of contacts exported.
    """
    if not conversations_dir.exists():
        logger.info(f"No conversations to export in {conversations_dir}")
        return 0

    export: dict[str, list] = {}
    for path in sorted(conversations_dir.glob("*.json")):
        entries = read_json(path, default=[])
        export[path.stem] = entries if isinstance(entries, list) else []

    write_json(output, export)
    logger.info(f"Exported {len(export)} conversation(s) to {output}")
    return len(export)


def create_backup(data_dir: Path, backups_dir: Path, now: datetime | None = None) -> Path:
    """Copy conversations, logs and state documents into a timestamped folder."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    target = backups_dir / f"backup_{stamp}"
    target.mkdir(parents=True)

    for name in ("conversations", "logs"):
        source = data_dir / name
        if source.exists():
            shutil.copytree(source, target / name)

    for name in STATE_FILES:
        source = data_dir / name
        if source.exists():
            shutil.copy2(source, target / name)

    logger.info(f"Backup created at {target}")
    return target


@dataclass
class DataSummary:
    log_files: int = 0
    contacts: int = 0
    messages: int = 0
    clients: int = 0
    total_quotes: int = 0

    def lines(self) -> list[str]:
        return [
            f"Log files: {self.log_files}",
            f"Unique conversations: {self.contacts}",
            f"Total messages: {self.messages}",
            f"Known clients: {self.clients}",
            f"Quotations: {self.total_quotes}",
        ]


def summarize(data_dir: Path) -> DataSummary:
    """Count log files, conversations, clients and quotations under ``data_dir``."""
    summary = DataSummary()

    logs_dir = data_dir / "logs"
    if logs_dir.exists():
        summary.log_files = sum(1 for p in logs_dir.iterdir() if p.is_file())

    conversations_dir = data_dir / "conversations"
    if conversations_dir.exists():
        for path in conversations_dir.glob("*.json"):
            try:
                entries = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.warning(f"Skipping unreadable conversation file {path}")
                continue
            summary.contacts += 1
            summary.messages += len(entries) if isinstance(entries, list) else 0

    tiers = read_json(data_dir / "client_tiers.json", default={})
    summary.clients = len(tiers) if isinstance(tiers, dict) else 0

    stats = read_json(data_dir / "bot_stats.json", default={})
    if isinstance(stats, dict):
        summary.total_quotes = int(stats.get("total_quotes", 0) or 0)

    return summary
