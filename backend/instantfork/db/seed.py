"""Database seeding script for development.

Populates the database with demo owners, DMV restaurants and live deals.
Run with: python -m instantfork.db.seed (from the backend directory)
"""

import asyncio
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import select

from instantfork.db.session import async_session_factory, engine
from instantfork.models import Base, Deal, Restaurant, User
from instantfork.models.base import utcnow
from instantfork.services.auth_service import hash_password

DEMO_PASSWORD = "instantfork1"

RESTAURANTS = [
    {
        "owner": ("rosa@demo.instantfork.app", "Rosa Marino"),
        "name": "Dupont Pizzeria",
        "description": "Neapolitan pizza by the slice and by the pie",
        "category": "Italian",
        "address": "1500 Connecticut Ave NW, Washington, DC 20036",
        "latitude": 38.9097,
        "longitude": -77.0434,
        "deals": [
            ("Half-price Margherita", ["pizza", "vegetarian", "dinner"], "18.00", "9.00", 5, 20),
            ("Lunch slice combo", ["pizza", "lunch"], "12.00", "7.50", 3, 40),
        ],
    },
    {
        "owner": ("minh@demo.instantfork.app", "Minh Tran"),
        "name": "Bethesda Pho House",
        "description": "Slow-simmered pho and banh mi",
        "category": "Vietnamese",
        "address": "7900 Wisconsin Ave, Bethesda, MD 20814",
        "latitude": 38.9869,
        "longitude": -77.0947,
        "deals": [
            ("Pho for two", ["soup", "dinner", "gluten-free"], "32.00", "20.00", 6, 15),
            ("Banh mi happy hour", ["sandwich", "lunch"], "11.00", "6.00", 2, None),
        ],
    },
    {
        "owner": ("carmen@demo.instantfork.app", "Carmen Diaz"),
        "name": "Clarendon Taqueria",
        "description": "Street tacos and fresh salsas",
        "category": "Mexican",
        "address": "3100 Clarendon Blvd, Arlington, VA 22201",
        "latitude": 38.8870,
        "longitude": -77.0953,
        "deals": [
            ("Taco Tuesday trio", ["tacos", "dinner"], "15.00", "8.00", 8, 30),
            ("Vegan burrito bowl", ["vegan", "vegetarian", "lunch"], "13.00", "9.00", 4, 25),
        ],
    },
]


async def seed_restaurants():
    """Seed demo owners, their restaurants and a few live deals."""
    async with async_session_factory() as session:
        # Check if restaurants already exist
        result = await session.execute(select(Restaurant).limit(1))
        if result.scalar_one_or_none():
            print("Restaurants already seeded. Skipping...")
            return

        now = utcnow()
        deal_count = 0

        for data in RESTAURANTS:
            email, full_name = data["owner"]
            owner = User(
                email=email,
                full_name=full_name,
                hashed_password=hash_password(DEMO_PASSWORD),
            )
            session.add(owner)
            await session.flush()  # Get the owner ID

            restaurant = Restaurant(
                owner_id=owner.id,
                name=data["name"],
                description=data["description"],
                category=data["category"],
                address=data["address"],
                latitude=data["latitude"],
                longitude=data["longitude"],
            )
            session.add(restaurant)
            await session.flush()

            for title, tags, original, price, hours, quantity in data["deals"]:
                session.add(Deal(
                    restaurant_id=restaurant.id,
                    title=title,
                    tags=tags,
                    original_price=Decimal(original),
                    deal_price=Decimal(price),
                    latitude=restaurant.latitude,
                    longitude=restaurant.longitude,
                    start_time=now,
                    end_time=now + timedelta(hours=hours),
                    quantity_available=quantity,
                ))
                deal_count += 1

        await session.commit()
        print(f"✓ Seeded {len(RESTAURANTS)} restaurants and {deal_count} deals")
        print(f"  Owner logins use the password '{DEMO_PASSWORD}'")


async def main():
    """Create tables and run all seeding functions."""
    print("Starting database seeding...")

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        await seed_restaurants()
        print("\n✅ Database seeding completed successfully!")
    except Exception as e:
        print(f"\n❌ Error during seeding: {e}")
        raise
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
