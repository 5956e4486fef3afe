"""Seed the providers and countries tables.

Idempotent: existing rows (matched by provider name / country code) are
left untouched.

Usage:
    python scripts/seed_reference_data.py
    python scripts/seed_reference_data.py --create-tables
"""

import argparse
import asyncio
import os
import sys

# Add backend to path so we can import esim_compare without installing it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from esim_compare.config import settings
from esim_compare.db.session import build_engine, build_session_factory, create_tables
from esim_compare.db.store import COUNTRIES_TABLE, PROVIDERS_TABLE, SQLAlchemyPlanStore

PROVIDERS = [
    {
        "name": "Airalo",
        "website_url": "https://www.airalo.com",
        "description": "eSIM store covering 200+ countries with metered and unlimited packages",
        "is_active": True,
    },
    {
        "name": "Saily",
        "website_url": "https://saily.com",
        "description": "Travel eSIM by Nord Security",
        "is_active": True,
    },
    {
        "name": "Holafly",
        "website_url": "https://esim.holafly.com",
        "description": "Unlimited-data travel eSIMs",
        "is_active": True,
    },
]

# (code, name, region)
COUNTRIES = [
    ("US", "United States", "North America"),
    ("CA", "Canada", "North America"),
    ("MX", "Mexico", "North America"),
    ("BR", "Brazil", "South America"),
    ("AR", "Argentina", "South America"),
    ("CL", "Chile", "South America"),
    ("CO", "Colombia", "South America"),
    ("PE", "Peru", "South America"),
    ("GB", "United Kingdom", "Europe"),
    ("DE", "Germany", "Europe"),
    ("FR", "France", "Europe"),
    ("ES", "Spain", "Europe"),
    ("IT", "Italy", "Europe"),
    ("NL", "Netherlands", "Europe"),
    ("CH", "Switzerland", "Europe"),
    ("AT", "Austria", "Europe"),
    ("BE", "Belgium", "Europe"),
    ("PT", "Portugal", "Europe"),
    ("GR", "Greece", "Europe"),
    ("PL", "Poland", "Europe"),
    ("CZ", "Czech Republic", "Europe"),
    ("IE", "Ireland", "Europe"),
    ("DK", "Denmark", "Europe"),
    ("SE", "Sweden", "Europe"),
    ("NO", "Norway", "Europe"),
    ("FI", "Finland", "Europe"),
    ("TR", "Turkey", "Europe"),
    ("JP", "Japan", "Asia"),
    ("KR", "South Korea", "Asia"),
    ("CN", "China", "Asia"),
    ("HK", "Hong Kong", "Asia"),
    ("TW", "Taiwan", "Asia"),
    ("SG", "Singapore", "Asia"),
    ("TH", "Thailand", "Asia"),
    ("MY", "Malaysia", "Asia"),
    ("ID", "Indonesia", "Asia"),
    ("PH", "Philippines", "Asia"),
    ("VN", "Vietnam", "Asia"),
    ("IN", "India", "Asia"),
    ("AE", "United Arab Emirates", "Middle East"),
    ("SA", "Saudi Arabia", "Middle East"),
    ("QA", "Qatar", "Middle East"),
    ("KW", "Kuwait", "Middle East"),
    ("BH", "Bahrain", "Middle East"),
    ("OM", "Oman", "Middle East"),
    ("JO", "Jordan", "Middle East"),
    ("IL", "Israel", "Middle East"),
    ("EG", "Egypt", "Africa"),
    ("ZA", "South Africa", "Africa"),
    ("KE", "Kenya", "Africa"),
    ("MA", "Morocco", "Africa"),
    ("AU", "Australia", "Oceania"),
    ("NZ", "New Zealand", "Oceania"),
]


async def seed(store: SQLAlchemyPlanStore) -> None:
    """Insert missing providers and countries."""
    added = skipped = 0

    for provider in PROVIDERS:
        if await store.select_one(PROVIDERS_TABLE, {"name": provider["name"]}):
            print(f"  ⏭️  Provider '{provider['name']}' already exists, skipping")
            skipped += 1
            continue
        await store.insert(PROVIDERS_TABLE, provider)
        print(f"  ✅ Added provider: {provider['name']}")
        added += 1

    for code, name, region in COUNTRIES:
        if await store.select_one(COUNTRIES_TABLE, {"code": code}):
            skipped += 1
            continue
        await store.insert(COUNTRIES_TABLE, {"code": code, "name": name, "region": region})
        added += 1

    print(f"\n  ✅ Added: {added} rows")
    print(f"  ⏭️  Skipped: {skipped} rows (already exist)\n")


async def main(init_tables: bool) -> None:
    engine = build_engine(settings)
    try:
        if init_tables:
            await create_tables(engine)
            print("  🗄️  Tables created")
        await seed(SQLAlchemyPlanStore(build_session_factory(engine)))
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed providers and countries")
    parser.add_argument("--create-tables", action="store_true", help="Create tables before seeding")
    args = parser.parse_args()
    asyncio.run(main(args.create_tables))
