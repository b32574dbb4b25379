"""
Import artist payloads from a JSON file into the database.

Usage:
    python scripts/import_artist_data.py [path/to/artists.json] [--pacing-ms 500]

Exits 0 once every item has been attempted, whatever the individual
outcomes; exits 1 only when the file cannot be read or parsed.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Add parent directory to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from agents.ingestor.agent import ArtistIngestor
from agents.ingestor.batch import BatchImporter, BatchReport
from config.settings import settings
from models.database import AsyncSessionLocal
from models.gateway import SqlAlchemyGateway

DEFAULT_PATH = "artist_serverapi_response.json"


class InputFileError(Exception):
    pass


def load_payloads(path: Path) -> list:
    """Read the JSON array of artist payloads"""
    if not path.exists():
        raise InputFileError(f"File not found at {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InputFileError(f"Could not read {path}: {e}") from e

    if not isinstance(data, list):
        raise InputFileError(f"Expected a JSON array of artists in {path}, got {type(data).__name__}")
    return data


def print_summary(report: BatchReport) -> None:
    print("\n" + "=" * 70)
    print("📊 IMPORT SUMMARY")
    print("=" * 70)
    print(f"Total artists: {report.total}")
    print(f"✅ Successfully processed: {len(report.successful)}")
    print(f"❌ Failed: {len(report.failed)}")
    if report.skipped:
        print(f"⚠️  Skipped invalid entries: {len(report.skipped)}")

    if report.failed:
        print("\nFailed artists:")
        for item in report.failed:
            print(f"  • {item.name} ({item.id}): {item.error}")


async def run_import(path: Path, pacing_ms: int) -> BatchReport:
    payloads = load_payloads(path)
    print(f"\n📥 Found {len(payloads)} artists in {path}")

    importer = BatchImporter(ArtistIngestor(SqlAlchemyGateway(AsyncSessionLocal)), pacing_ms=pacing_ms)
    report = await importer.import_batch(payloads)

    for item in report.successful:
        print(f"  ✅ {item.name} ({item.id})")
    for item in report.failed:
        print(f"  ❌ {item.name} ({item.id}) - {item.error}")

    print_summary(report)
    return report


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import artist data from a JSON file")
    parser.add_argument('path', nargs='?', default=DEFAULT_PATH, help='JSON file with an array of artist payloads')
    parser.add_argument('--pacing-ms', type=int, default=settings.import_pacing_ms, help='Delay between artists')
    parser.add_argument('--log-level', default=settings.log_level)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        asyncio.run(run_import(Path(args.path), args.pacing_ms))
    except InputFileError as e:
        print(f"\n❌ Error: {e}")
        print("Usage: python scripts/import_artist_data.py [path/to/json/file]")
        return 1

    print("\n✅ Import completed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
