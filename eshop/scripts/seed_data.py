# eshop/scripts/seed_data.py
import asyncio
from decimal import Decimal
from tortoise import Tortoise
from eshop.core.db import init_db
from eshop.core.logging import setup_logging
from eshop.models.catalog import Product

PRODUCTS = [
    {"name": "IPhone X", "category": ["Smart Phone"], "image_file": "product-1.png", "price": Decimal("950.00")},
    {"name": "Samsung 10", "category": ["Smart Phone"], "image_file": "product-2.png", "price": Decimal("840.00")},
    {"name": "Huawei Plus", "category": ["White Appliances"], "image_file": "product-3.png", "price": Decimal("650.00")},
    {"name": "Xiaomi Mi", "category": ["White Appliances"], "image_file": "product-4.png", "price": Decimal("470.00")},
    {"name": "HTC Phone", "category": ["Camera"], "image_file": "product-5.png", "price": Decimal("380.00")},
]


async def seed():
    # Idempotent: existing products are matched by name
    for data in PRODUCTS:
        product, created = await Product.get_or_create(
            name=data["name"],
            defaults={
                "category": data["category"],
                "description": f"{data['name']} demo product",
                "image_file": data["image_file"],
                "price": data["price"],
            },
        )
        print(("Created" if created else "Exists "), product.name, product.id)

    print("Catalog seeded.")


async def main():
    setup_logging()
    await init_db()
    await seed()
    await Tortoise.close_connections()


if __name__ == "__main__":
    asyncio.run(main())
