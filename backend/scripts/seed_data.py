#!/usr/bin/env python3
"""Seed script to create sample events and platform configurations."""

import asyncio
import sys
from datetime import date, time, timedelta
from pathlib import Path

# Add the backend directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from event_distributor.database import async_session_maker, init_db
from event_distributor.models.event import Event, EventType
from event_distributor.models.platform_config import Platform
from event_distributor.services.platforms.config_store import PlatformConfigStore


async def seed_events():
    """Create sample events for testing."""

    await init_db()

    start = date.today() + timedelta(days=14)
    events_data = [
        {
            "title": "Python Meetup Berlin",
            "description": "Lightning Talks rund um Python, danach Networking.",
            "date": start,
            "time": time(19, 0),
            "location": "Betahaus, Rudi-Dutschke-Straße 23, Berlin",
            "category": "technologie",
            "organizer": "Python User Group Berlin",
            "price": "Kostenlos",
            "tags": ["python", "networking", "tech"],
            "event_type": EventType.LIVE,
        },
        {
            "title": "Remote Yoga am Morgen",
            "description": "Sanfter Start in den Tag, für alle Level geeignet.",
            "date": start + timedelta(days=3),
            "time": time(7, 30),
            "category": "sport",
            "organizer": "Studio Atem",
            "price": "5 EUR",
            "url": "https://example.org/yoga-live",
            "tags": ["sport", "fitness"],
            "event_type": EventType.VIRTUAL,
        },
        {
            "title": "Street Food Festival",
            "description": "Über 40 Stände mit Essen aus aller Welt.",
            "date": start + timedelta(days=10),
            "time": time(12, 0),
            "location": "Markthalle Neun, Berlin",
            "category": "essen",
            "organizer": "Markthalle Neun",
            "price": "free",
            "tags": ["food", "essen", "festival"],
            "event_type": EventType.HYBRID,
        },
    ]

    async with async_session_maker() as db:
        for data in events_data:
            event = Event(**data)
            db.add(event)
            print(f"Created event: {event.title}")

        await db.commit()

    print("\n✅ Sample events created!")


async def seed_platform_configs():
    """Create a configuration row per platform with both methods enabled.

    Credentials are placeholders; start the backend with
    PLATFORM_SIMULATION=true to publish against simulated platforms.
    """

    async with async_session_maker() as db:
        store = PlatformConfigStore(db)
        for platform in Platform:
            await store.upsert(platform, {
                "api_enabled": True,
                "access_token": f"demo-{platform.value}-token",
                "automation_enabled": True,
                "username": f"demo@{platform.value}.example",
                "password": "demo-password",
            })
            print(f"Configured platform: {platform.value}")

        await db.commit()

    print("\n✅ Platform configurations created!")


async def main():
    """Run all seed functions."""
    print("🌱 Seeding database...\n")

    await seed_events()
    await seed_platform_configs()

    print("\n🎉 Database seeding complete!")


if __name__ == "__main__":
    asyncio.run(main())
