"""
Configuration for quote-a-bot.
"""

import contextlib
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class CompanyConfig:
    """Company contact details shown by /info."""

    name: str = "Tu Empresa"
    email: str = "contacto@tuempresa.com"
    web: str = "www.tuempresa.com"
    address: str = "Tu dirección aquí"


@dataclass
class HoursConfig:
    """Opening hours shown by /horarios and /info."""

    weekdays: str = "9:00 AM - 6:00 PM"
    saturdays: str = "9:00 AM - 2:00 PM"
    sundays: str = "Cerrado"


@dataclass
class TierLabels:
    """Display labels for the three client tiers."""

    general: str = "general"
    tienda: str = "tienda"
    instalador: str = "instalador"


@dataclass
class CatalogConfig:
    """Product spreadsheet location."""

    excel_path: Path = field(default_factory=lambda: Path("data/TablaProductos.xlsx"))
    sheet_name: str = "Precios"
    version: str = "1.0"
    images_dir: Path = field(default_factory=lambda: Path("data/product_images"))


@dataclass
class PricingConfig:
    """Pricing and quotation limits."""

    multiplier: float = 1.0
    default_tier: str = "general"
    max_quote_quantity: int = 1000
    max_quote_items: int = 20
    labels: TierLabels = field(default_factory=TierLabels)


@dataclass
class RatesConfig:
    """BCV exchange-rate source and cache window."""

    source_url: str = "https://www.bcv.org.ve/"
    timezone: str = "America/Caracas"
    timeout_seconds: float = 15.0
    verify_tls: bool = False
    publish_window_start: int = 15
    publish_window_end: int = 18


@dataclass
class StorageConfig:
    """Where state documents, logs and conversations are written."""

    data_dir: Path = field(default_factory=lambda: Path("data"))
    log_conversations: bool = True
    log_to_file: bool = False
    backups_enabled: bool = True
    last_quote_limit: int = 1000
    stats_history_limit: int = 10000

    @property
    def client_tiers_path(self) -> Path:
        return self.data_dir / "client_tiers.json"

    @property
    def stats_path(self) -> Path:
        return self.data_dir / "bot_stats.json"

    @property
    def rate_cache_path(self) -> Path:
        return self.data_dir / "rate_cache.json"

    @property
    def agents_path(self) -> Path:
        return self.data_dir / "agents.json"

    @property
    def conversations_dir(self) -> Path:
        return self.data_dir / "conversations"

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "logs"

    @property
    def backups_dir(self) -> Path:
        return self.data_dir / "backups"


@dataclass
class WebConfig:
    """Status web endpoint."""

    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:8080", "http://localhost:3000"]
    )


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class BotConfig:
    """Complete quote-a-bot configuration."""

    log_level: str = "INFO"

    company: CompanyConfig = field(default_factory=CompanyConfig)
    hours: HoursConfig = field(default_factory=HoursConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BotConfig":
        """Create config from a dictionary (e.g., from YAML)."""
        config = cls()

        if "log_level" in data:
            config.log_level = str(data["log_level"]).upper()

        if "company" in data:
            c = data["company"]
            config.company = CompanyConfig(
                name=c.get("name", config.company.name),
                email=c.get("email", config.company.email),
                web=c.get("web", config.company.web),
                address=c.get("address", config.company.address),
            )

        if "hours" in data:
            h = data["hours"]
            config.hours = HoursConfig(
                weekdays=h.get("weekdays", config.hours.weekdays),
                saturdays=h.get("saturdays", config.hours.saturdays),
                sundays=h.get("sundays", config.hours.sundays),
            )

        if "catalog" in data:
            cat = data["catalog"]
            config.catalog = CatalogConfig(
                excel_path=Path(cat.get("excel_path", config.catalog.excel_path)),
                sheet_name=cat.get("sheet_name", "Precios"),
                version=str(cat.get("version", "1.0")),
                images_dir=Path(cat.get("images_dir", config.catalog.images_dir)),
            )

        if "pricing" in data:
            p = data["pricing"]
            labels = p.get("labels", {})
            config.pricing = PricingConfig(
                multiplier=float(p.get("multiplier", 1.0)),
                default_tier=p.get("default_tier", "general"),
                max_quote_quantity=int(p.get("max_quote_quantity", 1000)),
                max_quote_items=int(p.get("max_quote_items", 20)),
                labels=TierLabels(
                    general=labels.get("general", "general"),
                    tienda=labels.get("tienda", "tienda"),
                    instalador=labels.get("instalador", "instalador"),
                ),
            )

        if "rates" in data:
            r = data["rates"]
            config.rates = RatesConfig(
                source_url=r.get("source_url", config.rates.source_url),
                timezone=r.get("timezone", "America/Caracas"),
                timeout_seconds=float(r.get("timeout_seconds", 15.0)),
                verify_tls=_as_bool(r.get("verify_tls", False)),
                publish_window_start=int(r.get("publish_window_start", 15)),
                publish_window_end=int(r.get("publish_window_end", 18)),
            )

        if "storage" in data:
            s = data["storage"]
            config.storage = StorageConfig(
                data_dir=Path(s.get("data_dir", "data")),
                log_conversations=_as_bool(s.get("log_conversations", True)),
                log_to_file=_as_bool(s.get("log_to_file", False)),
                backups_enabled=_as_bool(s.get("backups_enabled", True)),
                last_quote_limit=int(s.get("last_quote_limit", 1000)),
                stats_history_limit=int(s.get("stats_history_limit", 10000)),
            )

        if "web" in data:
            w = data["web"]
            config.web = WebConfig(
                host=w.get("host", "0.0.0.0"),
                port=int(w.get("port", 3000)),
                cors_origins=list(w.get("cors_origins", config.web.cors_origins)),
            )

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "BotConfig":
        """Load config from a YAML file, looking under a top-level ``bot`` key."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get("bot", data))

    def apply_env(self, env: Mapping[str, str] | None = None) -> "BotConfig":
        """
        Override settings from environment-style variables.

        Only variables that are present and non-empty are applied, so a
        YAML value survives unless the environment explicitly replaces it.
        """
        env = os.environ if env is None else env

        def get(name: str) -> str | None:
            value = env.get(name)
            return value if value not in (None, "") else None

        if v := get("LOG_LEVEL"):
            self.log_level = v.upper()

        if v := get("EMPRESA_NOMBRE"):
            self.company.name = v
        if v := get("EMPRESA_EMAIL"):
            self.company.email = v
        if v := get("EMPRESA_WEB"):
            self.company.web = v
        if v := get("EMPRESA_DIRECCION"):
            self.company.address = v

        if v := get("HORARIO_LUNES_VIERNES"):
            self.hours.weekdays = v
        if v := get("HORARIO_SABADOS"):
            self.hours.saturdays = v
        if v := get("HORARIO_DOMINGOS"):
            self.hours.sundays = v

        if v := get("EXCEL_FILE_PATH"):
            self.catalog.excel_path = Path(v)
        if v := get("EXCEL_SHEET_NAME"):
            self.catalog.sheet_name = v
        if v := get("CATALOG_VERSION"):
            self.catalog.version = v

        # Malformed numbers keep the previous value rather than failing startup
        if v := get("PRICE_MULTIPLIER"):
            with contextlib.suppress(ValueError):
                self.pricing.multiplier = float(v)
        if v := get("MAX_QUOTE_QUANTITY"):
            with contextlib.suppress(ValueError):
                self.pricing.max_quote_quantity = int(v)
        if v := get("MAX_QUOTE_ITEMS"):
            with contextlib.suppress(ValueError):
                self.pricing.max_quote_items = int(v)
        if v := get("DEFAULT_CLIENT_TYPE"):
            self.pricing.default_tier = v
        if v := get("CLIENT_TYPE_GENERAL"):
            self.pricing.labels.general = v
        if v := get("CLIENT_TYPE_TIENDA"):
            self.pricing.labels.tienda = v
        if v := get("CLIENT_TYPE_INSTALADOR"):
            self.pricing.labels.instalador = v

        if v := get("DATA_DIR"):
            self.storage.data_dir = Path(v)
        if v := get("LOG_CONVERSATIONS"):
            self.storage.log_conversations = _as_bool(v)
        if v := get("LOG_TO_FILE"):
            self.storage.log_to_file = _as_bool(v)
        if v := get("BACKUPS_ENABLED"):
            self.storage.backups_enabled = _as_bool(v)

        if v := get("PORT"):
            with contextlib.suppress(ValueError):
                self.web.port = int(v)
        if v := get("CORS_ORIGINS"):
            self.web.cors_origins = [o.strip() for o in v.split(",") if o.strip()]

        return self

    @classmethod
    def load(cls, path: Path, env: Mapping[str, str] | None = None) -> "BotConfig":
        """Load YAML config, then apply environment overrides."""
        return cls.from_yaml(path).apply_env(env)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for JSON serialization."""
        return {
            "log_level": self.log_level,
            "catalog": {
                "excel_path": str(self.catalog.excel_path),
                "sheet_name": self.catalog.sheet_name,
                "version": self.catalog.version,
            },
            "pricing": {
                "multiplier": self.pricing.multiplier,
                "default_tier": self.pricing.default_tier,
                "max_quote_quantity": self.pricing.max_quote_quantity,
                "max_quote_items": self.pricing.max_quote_items,
                "labels": {
                    "general": self.pricing.labels.general,
                    "tienda": self.pricing.labels.tienda,
                    "instalador": self.pricing.labels.instalador,
                },
            },
            "rates": {
                "source_url": self.rates.source_url,
                "timezone": self.rates.timezone,
            },
            "storage": {
                "data_dir": str(self.storage.data_dir),
                "log_conversations": self.storage.log_conversations,
            },
            "web": {
                "port": self.web.port,
                "cors_origins": self.web.cors_origins,
            },
        }
