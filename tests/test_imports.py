"""Tests for the POS product CSV import"""

import pytest
from sqlalchemy import select

from storefront.models import Category, Product
from storefront.services.imports import (
    TEMPLATE_CSV,
    import_products_csv,
    parse_bool,
    parse_category,
)

HEADER = "id,name,sku,price,tax,status,track_inv,on_hand,category\n"


async def product_by_sku(db, sku):
    result = await db.execute(select(Product).where(Product.sku == sku).execution_options(populate_existing=True))
    return result.scalar_one_or_none()


def test_parse_category():
    assert parse_category("01-Disposables-Nic") == ("01", "Disposables-Nic")
    assert parse_category("Accessories") == ("00", "Accessories")
    assert parse_category("  ") is None


def test_parse_bool():
    assert parse_bool("TRUE") is True
    assert parse_bool("1") is True
    assert parse_bool("false") is False
    assert parse_bool("") is True
    assert parse_bool(None, default=False) is False


@pytest.mark.asyncio
async def test_template_row_creates_category_and_product(test_db):
    report = await import_products_csv(test_db, TEMPLATE_CSV.encode("utf-8-sig"))

    assert report.created == 1
    assert report.message == "Import complete! Created: 1, Updated: 0"

    category = (await test_db.execute(select(Category).where(Category.code == "01"))).scalar_one()
    assert category.name == "Disposables-Nic"
    assert category.slug == "disposables-nic"
    assert category.sort_order == 1

    product = await product_by_sku(test_db, "01007")
    assert product.name == "Raz 25K"
    assert str(product.price) == "26.99"
    assert product.stock == 49
    assert product.external_id == "4358027"
    assert product.is_active and product.is_taxable and product.track_inventory
    assert product.category_id == category.id


@pytest.mark.asyncio
async def test_existing_sku_is_updated(test_db, test_products, test_category):
    pod_id = test_products["pod"].id
    content = HEADER + "99,Pod Kit v2,01001,17.50,false,inactive,true,3,01-Disposables-Nic\n"

    report = await import_products_csv(test_db, content)

    assert (report.created, report.updated) == (0, 1)
    product = await product_by_sku(test_db, "01001")
    assert product.id == pod_id
    assert product.name == "Pod Kit v2"
    assert str(product.price) == "17.50"
    assert product.is_taxable is False
    assert product.is_active is False
    assert product.stock == 3
    # Matched the existing category by code
    assert product.category_id == test_category.id


@pytest.mark.asyncio
async def test_rows_without_category_are_skipped(test_db):
    content = HEADER + "1,Orphan,77001,5.00,true,active,true,1,\n"

    report = await import_products_csv(test_db, content)

    assert report.skipped == 1
    assert report.created == 0
    assert await product_by_sku(test_db, "77001") is None


@pytest.mark.asyncio
async def test_missing_sku_is_generated(test_db, test_products):
    content = (
        TEMPLATE_CSV
        + "2,No Sku Pod,,9.99,true,active,true,4,01-Disposables-Nic\n"
        + "3,Bad Sku Pod,??,9.99,true,active,true,4,01-Disposables-Nic\n"
    )

    report = await import_products_csv(test_db, content)

    assert report.created == 3
    assert (await product_by_sku(test_db, "01008")).name == "No Sku Pod"
    assert (await product_by_sku(test_db, "01009")).name == "Bad Sku Pod"


@pytest.mark.asyncio
async def test_invalid_values_are_reported(test_db):
    content = (
        HEADER
        + "1,Cheap,88001,free,true,active,true,1,02-E-Liquid\n"
        + "2,,88002,3.00,true,active,true,1,02-E-Liquid\n"
        + "3,Fine,88003,3.00,true,active,true,1,02-E-Liquid\n"
    )

    report = await import_products_csv(test_db, content)

    assert report.created == 1
    assert len(report.errors) == 2
    assert report.errors[0].startswith("Row 2:")
    assert report.errors[1] == "Row 3: name is required"
