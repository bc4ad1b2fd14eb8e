"""Tests for configuration loading."""

from pathlib import Path

import yaml

from quote_a_bot.config import BotConfig


class TestDefaults:
    """Test default values."""

    def test_defaults(self):
        """Should have sensible defaults."""
        config = BotConfig()
        assert config.pricing.multiplier == 1.0
        assert config.pricing.default_tier == "general"
        assert config.pricing.max_quote_quantity == 1000
        assert config.pricing.max_quote_items == 20
        assert config.rates.timezone == "America/Caracas"
        assert config.rates.publish_window_start == 15
        assert config.rates.publish_window_end == 18
        assert config.web.port == 3000

    def test_storage_paths(self):
        """Should derive state file locations from the data directory."""
        config = BotConfig()
        config.storage.data_dir = Path("/srv/bot")
        assert config.storage.client_tiers_path == Path("/srv/bot/client_tiers.json")
        assert config.storage.agents_path == Path("/srv/bot/agents.json")
        assert config.storage.conversations_dir == Path("/srv/bot/conversations")


class TestFromYaml:
    """Test loading from YAML."""

    def test_missing_file(self, tmp_path):
        """Should return defaults when the file does not exist."""
        config = BotConfig.from_yaml(tmp_path / "nope.yaml")
        assert config.pricing.multiplier == 1.0

    def test_bot_section(self, tmp_path):
        """Should read settings under the top-level bot key."""
        path = tmp_path / "config.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "bot": {
                        "log_level": "debug",
                        "company": {"name": "Eléctricos Caribe"},
                        "pricing": {
                            "multiplier": 1.3,
                            "default_tier": "tienda",
                            "labels": {"tienda": "mayorista"},
                        },
                        "storage": {"data_dir": "/var/lib/bot", "log_conversations": "false"},
                        "web": {"port": 8080, "cors_origins": ["https://example.com"]},
                    }
                }
            )
        )
        config = BotConfig.from_yaml(path)
        assert config.log_level == "DEBUG"
        assert config.company.name == "Eléctricos Caribe"
        assert config.company.email == "contacto@tuempresa.com"
        assert config.pricing.multiplier == 1.3
        assert config.pricing.labels.tienda == "mayorista"
        assert config.pricing.labels.general == "general"
        assert config.storage.data_dir == Path("/var/lib/bot")
        assert config.storage.log_conversations is False
        assert config.web.cors_origins == ["https://example.com"]


class TestApplyEnv:
    """Test environment overrides."""

    def test_overrides(self):
        """Should apply recognised variables."""
        config = BotConfig().apply_env(
            {
                "PRICE_MULTIPLIER": "1.25",
                "MAX_QUOTE_QUANTITY": "500",
                "DEFAULT_CLIENT_TYPE": "instalador",
                "CLIENT_TYPE_INSTALADOR": "tecnico",
                "CORS_ORIGINS": "https://a.com, https://b.com,",
                "LOG_CONVERSATIONS": "no",
                "EXCEL_FILE_PATH": "precios.xlsx",
                "CATALOG_VERSION": "2.1",
                "EMPRESA_NOMBRE": "Mi Tienda",
                "HORARIO_SABADOS": "Cerrado",
                "PORT": "4000",
            }
        )
        assert config.pricing.multiplier == 1.25
        assert config.pricing.max_quote_quantity == 500
        assert config.pricing.default_tier == "instalador"
        assert config.pricing.labels.instalador == "tecnico"
        assert config.web.cors_origins == ["https://a.com", "https://b.com"]
        assert config.storage.log_conversations is False
        assert config.catalog.excel_path == Path("precios.xlsx")
        assert config.catalog.version == "2.1"
        assert config.company.name == "Mi Tienda"
        assert config.hours.saturdays == "Cerrado"
        assert config.web.port == 4000

    def test_malformed_number_keeps_previous(self):
        """Should ignore numbers that do not parse."""
        config = BotConfig().apply_env({"PRICE_MULTIPLIER": "abc", "PORT": ""})
        assert config.pricing.multiplier == 1.0
        assert config.web.port == 3000

    def test_env_wins_over_yaml(self, tmp_path):
        """Should apply the environment after the file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"bot": {"pricing": {"multiplier": 2.0}}}))
        config = BotConfig.load(path, {"PRICE_MULTIPLIER": "3"})
        assert config.pricing.multiplier == 3.0


class TestToDict:
    """Test serialization."""

    def test_to_dict(self):
        """Should expose the main settings."""
        data = BotConfig().to_dict()
        assert data["pricing"]["multiplier"] == 1.0
        assert data["pricing"]["labels"]["tienda"] == "tienda"
        assert data["web"]["port"] == 3000
