"""
Create the database tables and report what is stored.

Usage:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select

import models  # noqa: F401  (registers every table on Base.metadata)
from models.database import AsyncSessionLocal, Base, engine

KEY_TABLES = [
    "artists",
    "tracks",
    "albums",
    "artist_albums",
    "artist_tracks",
    "playlists",
    "playlist_images",
    "related_artists",
    "artist_external_links",
    "artist_playlists",
    "artist_top_cities",
    "cached_top_artists",
    "cached_top_tracks",
]


async def create_tables():
    """Create any table that does not exist yet"""
    print("\n🧱 Creating tables...")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print(f"  ✅ {len(Base.metadata.tables)} tables ready")


async def verify_database():
    """Print row counts of the key tables"""
    print("\n🔍 Verifying database...")

    async with AsyncSessionLocal() as session:
        for name in KEY_TABLES:
            table = Base.metadata.tables[name]
            count = await session.scalar(select(func.count()).select_from(table))
            print(f"  • {name:25} {count}")


async def main():
    """Main bootstrap function"""
    print("\n" + "="*70)
    print("🎵 SOUND ATLAS - DATABASE SETUP")
    print("="*70)

    try:
        await create_tables()
        await verify_database()

        print("\n" + "="*70)
        print("✅ Database setup completed successfully!")
        print("="*70 + "\n")

    except Exception as e:
        print(f"\n❌ Error setting up database: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
