"""Tests for customer records and the CSV export"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from storefront.models import Customer
from storefront.services.customers import (
    customers_for_export,
    export_customers_csv,
    find_or_create_customer,
    list_customers,
    normalize_email,
)


def test_export_format():
    customer = Customer(
        name="Jane Doe",
        email="jane@example.com",
        phone="555-0100",
        is_subscribed=True,
        total_reservations=3,
        total_spent=Decimal("12.5"),
        created_at=datetime(2026, 1, 15, 9, 30),
    )

    lines = export_customers_csv([customer]).splitlines()

    assert lines == [
        "Name,Email,Phone,Subscribed,Total Orders,Total Spent,Created",
        '"Jane Doe","jane@example.com","555-0100",Yes,3,12.50,"2026-01-15"',
    ]


def test_export_quotes_embedded_quotes_and_blanks():
    customer = Customer(
        name='Jimmy "JJ" Jones',
        email="jj@example.com",
        phone=None,
        is_subscribed=False,
        total_reservations=0,
        total_spent=Decimal("0"),
        created_at=datetime(2026, 2, 1),
    )

    line = export_customers_csv([customer]).splitlines()[1]

    assert line == '"Jimmy ""JJ"" Jones","jj@example.com","",No,0,0.00,"2026-02-01"'


def test_normalize_email():
    assert normalize_email("  Jane@Example.COM ") == "jane@example.com"


@pytest.mark.asyncio
async def test_find_or_create_fills_missing_dob(test_db, test_customer):
    customer = await find_or_create_customer(
        test_db, email="JANE@example.com", name="Jane Q. Doe", phone="555-0199", dob=date(1990, 5, 1),
    )
    await test_db.commit()

    assert customer.id == test_customer.id
    assert customer.name == "Jane Doe"
    assert customer.dob == date(1990, 5, 1)

    # An existing date of birth is kept
    again = await find_or_create_customer(test_db, email="jane@example.com", name="Jane", dob=date(2000, 1, 1))
    assert again.dob == date(1990, 5, 1)


@pytest.mark.asyncio
async def test_list_and_export_filters(test_db, test_customer):
    test_db.add(Customer(email="sub@example.com", name="Sam Subscriber", is_subscribed=True))
    await test_db.commit()

    customers, total = await list_customers(test_db, search="sam")
    assert total == 1
    assert customers[0].email == "sub@example.com"

    exported = await customers_for_export(test_db, subscribed_only=True)
    assert [c.email for c in exported] == ["sub@example.com"]
