"""
Product catalog loaded from the price spreadsheet.

The spreadsheet has one row per product with the columns Codigo,
Descripcion, Categoria and the three tier prices UsdM (store), UsdI
(installer) and UsdG (general). Column names are matched
case-insensitively. The file is re-read whenever its modification time
changes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd

from .errors import CatalogLoadError
from .models import Product

logger = logging.getLogger(__name__)

COLUMN_MAP = {
    "codigo": "code",
    "descripcion": "description",
    "categoria": "category",
    "usdm": "store_price",
    "usdi": "installer_price",
    "usdg": "general_price",
}
PRICE_COLUMNS = ("store_price", "installer_price", "general_price")


@dataclass
class CatalogStats:
    """Summary shown by /productos, /stats and the status endpoint."""

    count: int
    category_count: int
    last_load_time: datetime | None
    source: str | None = None


def read_products(path: Path, sheet_name: str | None = None) -> list[Product]:
    """Read products from an .xlsx/.xls workbook or a .csv file."""
    try:
        if path.suffix.lower() == ".csv":
            df = pd.read_csv(path, dtype=str)
        else:
            df = pd.read_excel(path, sheet_name=sheet_name or 0, dtype=str)
    except (OSError, ValueError, KeyError) as e:
        raise CatalogLoadError(f"Could not read {path}: {e}") from e

    df = df.rename(columns=lambda c: COLUMN_MAP.get(str(c).strip().lower(), str(c)))
    for column in ("code", "description", "category"):
        if column not in df.columns:
            df[column] = ""
        df[column] = df[column].fillna("").astype(str).str.strip()
    for column in PRICE_COLUMNS:
        if column not in df.columns:
            df[column] = 0.0
        df[column] = pd.to_numeric(df[column], errors="coerce").fillna(0.0)

    # Rows without a code or a description are padding, not products
    df = df[(df["code"] != "") & (df["description"] != "")]

    return [
        Product(
            code=row.code,
            description=row.description,
            category=row.category,
            store_price=float(row.store_price),
            installer_price=float(row.installer_price),
            general_price=float(row.general_price),
        )
        for row in df.itertuples(index=False)
    ]


class Catalog:
    """Code → product lookup with search and category listing."""

    def __init__(self, path: Path | None = None, sheet_name: str | None = None):
        self.path = path
        self.sheet_name = sheet_name
        self._products: list[Product] = []
        self._by_code: dict[str, Product] = {}
        self._mtime: float | None = None
        self.last_load_time: datetime | None = None

    @classmethod
    def from_products(cls, products: list[Product]) -> "Catalog":
        """Build an in-memory catalog (no backing file)."""
        catalog = cls()
        catalog._set_products(products)
        catalog.last_load_time = datetime.now()
        return catalog

    def _set_products(self, products: list[Product]) -> None:
        self._products = list(products)
        self._by_code = {}
        for product in self._products:
            # First row wins for duplicated codes
            self._by_code.setdefault(product.code.lower(), product)

    def load(self) -> bool:
        """Load products from the spreadsheet. Returns False if unavailable."""
        if self.path is None:
            return bool(self._products)
        if not self.path.exists():
            logger.warning(f"Product spreadsheet not found: {self.path}")
            return False
        try:
            products = read_products(self.path, self.sheet_name)
        except CatalogLoadError:
            logger.exception("Error loading products")
            return False

        self._set_products(products)
        self._mtime = self.path.stat().st_mtime
        self.last_load_time = datetime.fromtimestamp(self._mtime)
        logger.info(f"Loaded {len(products)} products from {self.path}")
        return True

    def check_for_updates(self) -> bool:
        """Reload when the spreadsheet changed on disk. Returns True if reloaded."""
        if self.path is None or not self.path.exists():
            return False
        mtime = self.path.stat().st_mtime
        if self._mtime is None or mtime > self._mtime:
            logger.info("Product spreadsheet changed, reloading")
            return self.load()
        return False

    @property
    def loaded(self) -> bool:
        return bool(self._products)

    def by_code(self, code: str) -> Product | None:
        self.check_for_updates()
        return self._by_code.get(str(code).strip().lower())

    def __contains__(self, code: object) -> bool:
        return self.by_code(str(code)) is not None

    def search(self, term: str) -> list[Product]:
        """Products whose description or category contains ``term``."""
        self.check_for_updates()
        needle = term.strip().lower()
        if not needle:
            return []
        return [
            p
            for p in self._products
            if needle in p.description.lower() or needle in p.category.lower()
        ]

    def categories(self) -> list[str]:
        """Distinct non-empty categories in spreadsheet order."""
        self.check_for_updates()
        seen: dict[str, None] = {}
        for p in self._products:
            if p.category.strip():
                seen.setdefault(p.category, None)
        return list(seen)

    def all_products(self) -> list[Product]:
        self.check_for_updates()
        return list(self._products)

    def stats(self) -> CatalogStats:
        self.check_for_updates()
        return CatalogStats(
            count=len(self._products),
            category_count=len(self.categories()),
            last_load_time=self.last_load_time,
            source=str(self.path) if self.path else None,
        )
