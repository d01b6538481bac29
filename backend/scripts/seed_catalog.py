"""Seed a demo catalog with a seller and listings of every variant.

Creates the tables when missing, then inserts active Retail, Auction and
Anti-Piece listings owned by a demo seller. Existing rows are left alone, so
running it twice only adds what is missing.

Run from the backend directory:
    PYTHONPATH=. python scripts/seed_catalog.py [--count N]
"""

import argparse
import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import func, select

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

SELLER_EMAIL = "seller@royalbid.example"

BRANDS = {
    "Watches": ["Rolex", "Omega", "Patek Philippe", "Seiko"],
    "Jewelry": ["Cartier", "Tiffany & Co.", "Bulgari"],
    "Art": [None],
    "Antiques": [None, "Christofle"],
    "Collectibles": ["Lego", "Funko", None],
    "Electronics": ["Sony", "Leica", "Bang & Olufsen"],
    "Fashion": ["Hermes", "Chanel", "Gucci"],
    "Books": [None],
    "Sports": ["Wilson", "Callaway"],
    "Home & Garden": ["Alessi", "Le Creuset"],
}

CONDITIONS = ["New", "Like New", "Excellent", "Good", "Fair"]


def _listing(auction_type: str, category: str, n: int, now: datetime) -> dict:
    brand = random.choice(BRANDS[category])
    base = Decimal(random.choice([35, 80, 150, 320, 750, 1800, 4200, 9000, 15000]))
    fields = {
        "title": f"{brand or 'Vintage'} {category} piece #{n}",
        "description": f"Demo {auction_type.lower()} listing in {category}.",
        "category": category,
        "condition": random.choice(CONDITIONS),
        "brand": brand,
        "tags": [category.lower(), auction_type.lower()],
        "images": [{"url": f"https://picsum.photos/seed/{auction_type}-{n}/600/600", "alt_text": None, "is_primary": True}],
        "auction_type": auction_type,
        "status": "active",
        "is_active": True,
        "is_featured": n % 5 == 0,
        "view_count": random.randint(0, 500),
        "created_at": now - timedelta(days=random.randint(0, 330)),
    }
    if auction_type == "Auction":
        fields["starting_bid"] = base
        fields["auction_end_date"] = now + timedelta(hours=random.randint(-48, 240))
    else:
        fields["price"] = base
        fields["stocks"] = random.randint(1, 20) if auction_type == "Retail" else 1
        fields["discount"] = Decimal(random.choice([0, 0, 0, 5, 10, 25]))
    return fields


async def main(count: int):
    from royalbid.database import Base, async_session, engine
    from royalbid.models import Product, User, UserRole
    from royalbid.services.product_editor import generate_sku

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    now = datetime.now(timezone.utc)

    async with async_session() as session:
        seller = (
            await session.execute(select(User).where(User.email == SELLER_EMAIL))
        ).scalar_one_or_none()
        if seller is None:
            seller = User(email=SELLER_EMAIL, first_name="Demo", last_name="Seller", role=UserRole.SELLER.value)
            session.add(seller)
            await session.flush()
            logger.info("Created demo seller %s", seller.id)

        for auction_type in ("Retail", "Auction", "Anti-Piece"):
            existing = (
                await session.execute(
                    select(func.count(Product.id)).where(
                        Product.seller_id == seller.id, Product.auction_type == auction_type
                    )
                )
            ).scalar_one()
            missing = max(0, count - existing)
            for n in range(existing, existing + missing):
                category = random.choice(list(BRANDS))
                fields = _listing(auction_type, category, n, now)
                session.add(Product(seller_id=seller.id, sku=generate_sku(now), updated_at=now, **fields))
            logger.info("%s: %d existing, %d added", auction_type, existing, missing)

        await session.commit()

    await engine.dispose()
    logger.info("Seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--count", type=int, default=25, help="listings per variant")
    args = parser.parse_args()
    asyncio.run(main(args.count))
