"""Tests for data directory housekeeping."""

import json
import os
from datetime import datetime, timedelta

from quote_a_bot.maintenance import clean_old_logs, create_backup, export_conversations, summarize


def make_data_dir(root):
    data = root / "data"
    (data / "logs").mkdir(parents=True)
    (data / "conversations").mkdir()
    (data / "logs" / "bot.log").write_text("line\n")
    (data / "conversations" / "5841.json").write_text(json.dumps([{"message": "hola"}, {"message": "hi"}]))
    (data / "conversations" / "5842.json").write_text(json.dumps([{"message": "/ayuda"}]))
    (data / "client_tiers.json").write_text(json.dumps({"5841": "general", "5842": "tienda"}))
    (data / "bot_stats.json").write_text(json.dumps({"total_quotes": 7}))
    return data


class TestCleanOldLogs:
    """Test log cleanup."""

    def test_removes_only_old_files(self, tmp_path):
        """Should delete files older than the cutoff."""
        logs = tmp_path / "logs"
        logs.mkdir()
        old = logs / "old.log"
        new = logs / "new.log"
        old.write_text("x")
        new.write_text("y")
        ten_days_ago = (datetime.now() - timedelta(days=10)).timestamp()
        os.utime(old, (ten_days_ago, ten_days_ago))

        assert clean_old_logs(logs, days=7) == 1
        assert not old.exists()
        assert new.exists()

    def test_missing_dir(self, tmp_path):
        """Should do nothing when there are no logs."""
        assert clean_old_logs(tmp_path / "logs") == 0


class TestExportConversations:
    """Test conversation export."""

    def test_export(self, tmp_path):
        """Should merge conversation files keyed by contact."""
        data = make_data_dir(tmp_path)
        output = tmp_path / "export.json"
        assert export_conversations(data / "conversations", output) == 2
        exported = json.loads(output.read_text())
        assert set(exported) == {"5841", "5842"}
        assert len(exported["5841"]) == 2


class TestBackup:
    """Test backups."""

    def test_backup_copies_state(self, tmp_path):
        """Should copy conversations, logs and state documents."""
        data = make_data_dir(tmp_path)
        target = create_backup(data, tmp_path / "backups", now=datetime(2025, 3, 10, 8, 30))
        assert target.name == "backup_2025-03-10T08-30-00"
        assert (target / "conversations" / "5841.json").exists()
        assert (target / "logs" / "bot.log").exists()
        assert (target / "client_tiers.json").exists()
        assert not (target / "agents.json").exists()


class TestSummarize:
    """Test the data summary."""

    def test_counts(self, tmp_path):
        """Should count logs, conversations, clients and quotations."""
        summary = summarize(make_data_dir(tmp_path))
        assert summary.log_files == 1
        assert summary.contacts == 2
        assert summary.messages == 3
        assert summary.clients == 2
        assert summary.total_quotes == 7

    def test_empty(self, tmp_path):
        """Should report zeros for an empty directory."""
        summary = summarize(tmp_path)
        assert summary.contacts == 0
        assert "Quotations: 0" in summary.lines()
