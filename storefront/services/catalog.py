"""Products and categories: queries for the shop and back office, and admin writes"""

import re
import unicodedata
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, func, or_, and_, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import settings
from storefront.exceptions import ConflictError, DuplicateFieldError, NotFoundError
from storefront.models.category import Category
from storefront.models.product import Product

PRODUCT_SORTS = {
    "name": Product.name.asc(),
    "price": Product.price.asc(),
    "created_at": Product.created_at.desc(),
}


def slugify(value: str) -> str:
    """ASCII, lower-case, dash separated"""
    value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^\w\s-]", "", value.lower())
    return re.sub(r"[-\s_]+", "-", value).strip("-")


async def unique_category_slug(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> str:
    """Slug from ``name``, suffixed -1, -2, ... until unused"""
    base = slugify(name) or "category"
    slug = base
    counter = 1
    while True:
        query = select(Category.id).where(Category.slug == slug)
        if exclude_id is not None:
            query = query.where(Category.id != exclude_id)
        if (await db.execute(query)).first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


def _search_filter(term: str):
    like = f"%{term}%"
    return or_(Product.name.ilike(like), Product.sku.ilike(like))


def low_stock_filter():
    return and_(
        Product.track_inventory == True,  # noqa: E712
        Product.stock <= settings.low_stock_threshold,
        Product.stock > 0,
    )


def out_of_stock_filter():
    return and_(Product.track_inventory == True, Product.stock <= 0)  # noqa: E712


def in_stock_filter():
    return or_(Product.track_inventory == False, Product.stock > 0)  # noqa: E712


async def _paginate(db: AsyncSession, query, page: int, page_size: int) -> Tuple[list, int]:
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar()
    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    return list(result.scalars().all()), total or 0


# Shop


async def list_shop_products(
    db: AsyncSession,
    category: Optional[str] = None,
    search: Optional[str] = None,
    in_stock: bool = False,
    sort: str = "name",
    page: int = 1,
    page_size: int = 24,
) -> Tuple[List[Product], int]:
    """Active products with the catalog filters; unknown sort keys fall back to name"""
    query = select(Product).where(Product.is_active == True)  # noqa: E712

    if category:
        category_id = (await db.execute(select(Category.id).where(Category.slug == category))).scalar()
        if category_id is not None:
            query = query.where(Product.category_id == category_id)

    if search:
        query = query.where(_search_filter(search))

    if in_stock:
        query = query.where(in_stock_filter())

    query = query.order_by(PRODUCT_SORTS.get(sort, PRODUCT_SORTS["name"]), Product.id)
    return await _paginate(db, query, page, page_size)


async def list_featured_products(db: AsyncSession, limit: int = 8) -> List[Product]:
    result = await db.execute(
        select(Product)
        .where(Product.is_active == True, Product.is_featured == True)  # noqa: E712
        .order_by(Product.name)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_active_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if product is None or not product.is_active:
        raise NotFoundError("Product not found")
    return product


async def list_shop_categories(db: AsyncSession) -> List[Tuple[Category, int]]:
    """Active categories in display order with their active product counts"""
    counts = (
        select(Product.category_id, func.count(Product.id).label("products_count"))
        .where(Product.is_active == True)  # noqa: E712
        .group_by(Product.category_id)
        .subquery()
    )
    result = await db.execute(
        select(Category, func.coalesce(counts.c.products_count, 0))
        .outerjoin(counts, counts.c.category_id == Category.id)
        .where(Category.is_active == True)  # noqa: E712
        .order_by(Category.sort_order, Category.name)
    )
    return [(category, count) for category, count in result.all()]


# Back office: products


async def list_admin_products(
    db: AsyncSession,
    search: Optional[str] = None,
    category_id: Optional[int] = None,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 25,
) -> Tuple[List[Product], int]:
    query = select(Product)
    if search:
        query = query.where(_search_filter(search))
    if category_id:
        query = query.where(Product.category_id == category_id)

    status_filters = {
        "active": Product.is_active == True,  # noqa: E712
        "inactive": Product.is_active == False,  # noqa: E712
        "featured": Product.is_featured == True,  # noqa: E712
        "low_stock": low_stock_filter(),
        "out_of_stock": out_of_stock_filter(),
    }
    if status in status_filters:
        query = query.where(status_filters[status])

    return await _paginate(db, query.order_by(Product.name, Product.id), page, page_size)


async def product_stats(db: AsyncSession) -> Dict[str, int]:
    async def count(*conditions) -> int:
        query = select(func.count(Product.id))
        if conditions:
            query = query.where(*conditions)
        return (await db.execute(query)).scalar() or 0

    return {
        "total": await count(),
        "active": await count(Product.is_active == True),  # noqa: E712
        "featured": await count(Product.is_featured == True),  # noqa: E712
        "low_stock": await count(low_stock_filter()),
        "out_of_stock": await count(out_of_stock_filter()),
    }


async def _ensure_unique_sku(db: AsyncSession, sku: str, exclude_id: Optional[int] = None) -> None:
    query = select(Product.id).where(Product.sku == sku)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise DuplicateFieldError("The sku has already been taken.", field="sku")


async def _ensure_category(db: AsyncSession, category_id: Optional[int]) -> None:
    if category_id is not None and await db.get(Category, category_id) is None:
        raise DuplicateFieldError("The selected category is invalid.", field="category_id")


async def create_product(db: AsyncSession, data: dict) -> Product:
    await _ensure_unique_sku(db, data["sku"])
    await _ensure_category(db, data.get("category_id"))
    product = Product(**data)
    db.add(product)
    await db.commit()
    await db.refresh(product)
    return product


async def update_product(db: AsyncSession, product: Product, data: dict) -> Product:
    if "sku" in data and data["sku"] != product.sku:
        await _ensure_unique_sku(db, data["sku"], exclude_id=product.id)
    if "category_id" in data:
        await _ensure_category(db, data["category_id"])
    for field, value in data.items():
        setattr(product, field, value)
    await db.commit()
    await db.refresh(product)
    return product


async def set_product_stock(db: AsyncSession, product: Product, stock: int) -> Product:
    product.stock = stock
    await db.commit()
    await db.refresh(product)
    return product


async def get_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


async def delete_product(db: AsyncSession, product: Product) -> None:
    await db.delete(product)
    await db.commit()


# Back office: categories


async def list_admin_categories(
    db: AsyncSession,
    search: Optional[str] = None,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 15,
) -> Tuple[List[Tuple[Category, int]], int]:
    query = select(Category)
    if search:
        like = f"%{search}%"
        query = query.where(or_(
            Category.name.ilike(like),
            Category.code.ilike(like),
            Category.description.ilike(like),
        ))
    if status:
        query = query.where(Category.is_active == (status == "active"))

    categories, total = await _paginate(db, query.order_by(Category.sort_order, Category.name), page, page_size)
    counts = await product_counts(db, [category.id for category in categories])
    return [(category, counts.get(category.id, 0)) for category in categories], total


async def product_counts(db: AsyncSession, category_ids: List[int]) -> Dict[int, int]:
    if not category_ids:
        return {}
    result = await db.execute(
        select(Product.category_id, func.count(Product.id))
        .where(Product.category_id.in_(category_ids))
        .group_by(Product.category_id)
    )
    return {category_id: count for category_id, count in result.all()}


async def next_sort_order(db: AsyncSession) -> int:
    return ((await db.execute(select(func.max(Category.sort_order)))).scalar() or 0) + 1


async def _ensure_unique_code(db: AsyncSession, code: str, exclude_id: Optional[int] = None) -> None:
    query = select(Category.id).where(Category.code == code)
    if exclude_id is not None:
        query = query.where(Category.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise DuplicateFieldError("This category code is already in use.", field="code")


async def get_category(db: AsyncSession, category_id: int) -> Category:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def create_category(db: AsyncSession, data: dict) -> Category:
    await _ensure_unique_code(db, data["code"])
    category = Category(**data)
    category.slug = await unique_category_slug(db, data["name"])
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category


async def update_category(db: AsyncSession, category: Category, data: dict) -> Category:
    if "code" in data and data["code"] != category.code:
        await _ensure_unique_code(db, data["code"], exclude_id=category.id)
    if "name" in data and data["name"] != category.name:
        category.slug = await unique_category_slug(db, data["name"], exclude_id=category.id)
    for field, value in data.items():
        setattr(category, field, value)
    await db.commit()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, category: Category) -> None:
    """Refuse while products are still assigned"""
    count = (await product_counts(db, [category.id])).get(category.id, 0)
    if count:
        raise ConflictError(
            f"Cannot delete category. It has {count} products assigned. "
            "Please reassign or delete those products first."
        )
    await db.delete(category)
    await db.commit()


async def reorder_categories(db: AsyncSession, orders: List[Tuple[int, int]]) -> None:
    for category_id, sort_order in orders:
        await db.execute(update(Category).where(Category.id == category_id).values(sort_order=sort_order))
    await db.commit()
