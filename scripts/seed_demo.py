#!/usr/bin/env python3
"""
Seed script to create demo categories, products and an admin login
"""

import asyncio
import os
from decimal import Decimal

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

CATEGORIES = [
    ("01", "Disposables-Nic", 1),
    ("02", "E-Liquid", 2),
    ("03", "Delta 8-Disp", 3),
    ("04", "Delta 8-Carts", 4),
    ("05", "Delta 8-Edibles", 5),
    ("30", "Paper", 30),
]

# (category code, sku, name, price, taxable, stock, featured)
PRODUCTS = [
    ("01", "01007", "Raz 25K", "26.99", True, 49, True),
    ("01", "01012", "Geek Bar Pulse", "21.99", True, 30, True),
    ("02", "02001", "Naked 100 Lava Flow 60ml", "18.99", True, 12, False),
    ("02", "02004", "Pachamama Mango 60ml", "17.99", True, 4, False),
    ("03", "03002", "Delta 8 Disposable 2g", "29.99", True, 0, False),
    ("04", "04003", "Delta 8 Cartridge 1g", "24.99", True, 18, True),
    ("05", "05001", "Delta 8 Gummies 10ct", "19.99", True, 25, False),
    ("30", "30001", "RAW Classic King Size", "3.49", False, 120, False),
]


async def seed_demo_data():
    """Seed demo data for development"""
    from storefront.database import SessionLocal, engine, Base
    from storefront.models import Category, Product, User, UserRole
    from storefront.services.catalog import slugify
    from sqlalchemy import select

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo data already exists
        result = await db.execute(select(Category).where(Category.code == "01"))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating categories...")
        categories = {}
        for code, name, sort_order in CATEGORIES:
            category = Category(code=code, name=name, slug=slugify(name), sort_order=sort_order, is_active=True)
            db.add(category)
            categories[code] = category
        await db.flush()

        print("Creating products...")
        for code, sku, name, price, taxable, stock, featured in PRODUCTS:
            db.add(Product(
                sku=sku,
                name=name,
                price=Decimal(price),
                is_taxable=taxable,
                track_inventory=True,
                stock=stock,
                category_id=categories[code].id,
                is_active=True,
                is_featured=featured,
                age_restricted=True,
            ))

        admin_email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
        admin_password = os.environ.get("ADMIN_PASSWORD", "changeme123")
        print(f"Creating admin user {admin_email}...")
        db.add(User(
            email=admin_email,
            hashed_password=pwd_context.hash(admin_password),
            full_name="Admin",
            role=UserRole.ADMIN,
            is_active=True,
        ))

        await db.commit()

    print(f"""
Demo data created successfully!

Categories: {len(CATEGORIES)}
Products: {len(PRODUCTS)}

Admin:
  Email: {admin_email}
  Password: {admin_password}
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
