#!/usr/bin/env python3
"""Maintenance utilities for the bot's data directory."""

import argparse
from pathlib import Path

from quote_a_bot.config import BotConfig
from quote_a_bot.maintenance import clean_old_logs, create_backup, export_conversations, summarize


def main() -> None:
    parser = argparse.ArgumentParser(description="quote-a-bot maintenance utilities")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Show what is stored in the data directory")

    clean = sub.add_parser("clean", help="Delete old log files")
    clean.add_argument(
        "days",
        type=int,
        nargs="?",
        default=7,
        help="Delete logs older than this many days (default: 7)",
    )

    export = sub.add_parser("export", help="Export all conversations to one JSON file")
    export.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=Path("conversations_export.json"),
        help="Output file (default: conversations_export.json)",
    )

    sub.add_parser("backup", help="Back up conversations, logs and state files")

    args = parser.parse_args()
    storage = BotConfig.load(args.config).storage

    if args.command == "stats":
        for line in summarize(storage.data_dir).lines():
            print(line)
    elif args.command == "clean":
        removed = clean_old_logs(storage.logs_dir, args.days)
        print(f"Removed {removed} log file(s) older than {args.days} days")
    elif args.command == "export":
        count = export_conversations(storage.conversations_dir, args.output)
        print(f"Exported {count} conversation(s) to {args.output}")
    elif args.command == "backup":
        target = create_backup(storage.data_dir, storage.backups_dir)
        print(f"Backup created at {target}")


if __name__ == "__main__":
    main()
