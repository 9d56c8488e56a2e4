"""Product import from the point-of-sale CSV export"""

import csv
import io
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.models.category import Category
from storefront.models.product import Product
from storefront.services.catalog import unique_category_slug

logger = structlog.get_logger()

IMPORT_COLUMNS = ["id", "name", "sku", "price", "tax", "status", "track_inv", "on_hand", "category"]

TEMPLATE_CSV = (
    "id,name,sku,price,tax,status,track_inv,on_hand,category\n"
    "4358027,Raz 25K,01007,26.99,true,active,true,49,01-Disposables-Nic\n"
)

SKU_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,99}$")
SKU_WIDTH = 5
TRUE_VALUES = {"true", "1", "yes"}


@dataclass
class ImportReport:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Import complete! Created: {self.created}, Updated: {self.updated}"


def parse_bool(value, default: bool = True) -> bool:
    if value is None or str(value).strip() == "":
        return default
    return str(value).strip().lower() in TRUE_VALUES


def parse_category(value: str) -> Optional[Tuple[str, str]]:
    """Split ``"01-Disposables-Nic"`` into ``("01", "Disposables-Nic")``.

    Without a dash the whole string is the name and the code is ``"00"``.
    """
    value = (value or "").strip()
    if not value:
        return None
    parts = value.split("-", 1)
    if len(parts) == 2:
        return parts[0].strip(), parts[1].strip()
    return "00", value


def _sort_order(code: str) -> int:
    try:
        return int(code)
    except ValueError:
        return 0


class ProductImporter:
    """Upserts products by SKU, creating categories on the fly"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.report = ImportReport()
        self._categories: Dict[str, int] = {}
        self._next_sku: Optional[int] = None

    async def category_id(self, value: str) -> Optional[int]:
        if value in self._categories:
            return self._categories[value]

        parsed = parse_category(value)
        if parsed is None:
            return None
        code, name = parsed

        result = await self.db.execute(select(Category).where(Category.code == code))
        category = result.scalar_one_or_none()
        if category is None:
            category = Category(
                code=code,
                name=name,
                slug=await unique_category_slug(self.db, name),
                sort_order=_sort_order(code),
                is_active=True,
            )
            self.db.add(category)
            await self.db.flush()
            logger.info("Category created from import", code=code, name=name)

        self._categories[value] = category.id
        return category.id

    async def next_sku(self) -> str:
        """Highest numeric SKU plus one, zero padded"""
        if self._next_sku is None:
            result = await self.db.execute(select(Product.sku))
            numeric = [int(sku) for (sku,) in result.all() if sku and sku.isdigit()]
            self._next_sku = max(numeric, default=0) + 1
        sku = str(self._next_sku).zfill(SKU_WIDTH)
        self._next_sku += 1
        return sku

    async def import_row(self, line: int, row: Dict[str, str]) -> None:
        category_id = await self.category_id(row.get("category") or "")
        if category_id is None:
            self.report.skipped += 1
            return

        name = (row.get("name") or "").strip()
        if not name:
            self.report.errors.append(f"Row {line}: name is required")
            return

        try:
            price = Decimal((row.get("price") or "0").strip() or "0").quantize(Decimal("0.01"))
        except InvalidOperation:
            self.report.errors.append(f"Row {line}: invalid price {row.get('price')!r}")
            return

        try:
            stock = int(Decimal((row.get("on_hand") or "0").strip() or "0"))
        except InvalidOperation:
            self.report.errors.append(f"Row {line}: invalid on_hand {row.get('on_hand')!r}")
            return

        values = {
            "external_id": (row.get("id") or "").strip() or None,
            "name": name,
            "price": price,
            "is_taxable": parse_bool(row.get("tax")),
            "track_inventory": parse_bool(row.get("track_inv")),
            "stock": stock,
            "category_id": category_id,
            "is_active": (row.get("status") or "active").strip().lower() == "active",
        }

        sku = (row.get("sku") or "").strip()
        existing = None
        if SKU_PATTERN.match(sku):
            result = await self.db.execute(select(Product).where(Product.sku == sku))
            existing = result.scalar_one_or_none()
        else:
            sku = await self.next_sku()

        if existing is not None:
            for key, value in values.items():
                setattr(existing, key, value)
            self.report.updated += 1
        else:
            self.db.add(Product(sku=sku, age_restricted=True, **values))
            await self.db.flush()
            self.report.created += 1

    async def run(self, content: str) -> ImportReport:
        reader = csv.DictReader(io.StringIO(content))
        reader.fieldnames = [name.strip().lower() for name in (reader.fieldnames or [])]

        try:
            for line, row in enumerate(reader, start=2):
                await self.import_row(line, row)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            "Product import finished",
            created=self.report.created,
            updated=self.report.updated,
            skipped=self.report.skipped,
            errors=len(self.report.errors),
        )
        return self.report


async def import_products_csv(db: AsyncSession, content) -> ImportReport:
    if isinstance(content, bytes):
        content = content.decode("utf-8-sig")
    return await ProductImporter(db).run(content)
