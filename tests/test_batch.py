from __future__ import annotations

from typing import List

import pytest

from agents.ingestor.agent import ArtistIngestor
from agents.ingestor.batch import BatchImporter, is_artist_payload
from sample_payloads import artist_payload


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _minimal(index: int, **overrides):
    payload = {"status": True, "type": "artist", "id": f"artist-{index}", "name": f"Artist {index}"}
    payload.update(overrides)
    return payload


@pytest.fixture
def sleep() -> _RecordingSleep:
    return _RecordingSleep()


@pytest.fixture
def importer(gateway, sleep) -> BatchImporter:
    return BatchImporter(ArtistIngestor(gateway), pacing_ms=500, sleep=sleep)


@pytest.mark.asyncio
async def test_malformed_item_does_not_stop_batch(importer, gateway) -> None:
    payloads = [_minimal(i) for i in range(1, 6)]
    payloads[2]["id"] = 3003

    report = await importer.import_batch(payloads)

    assert [item.id for item in report.successful] == ["artist-1", "artist-2", "artist-4", "artist-5"]
    assert len(report.failed) == 1
    assert report.failed[0].id == "3003"
    assert report.failed[0].name == "Artist 3"
    assert "id" in report.failed[0].error
    assert gateway.get("artists", "artist-5") is not None


@pytest.mark.asyncio
async def test_invalid_entries_are_skipped_not_failed(importer) -> None:
    payloads = [
        _minimal(1),
        _minimal(2, status=False),
        _minimal(3, type="album"),
        "not an object",
        _minimal(5),
    ]

    report = await importer.import_batch(payloads)

    assert report.skipped == [1, 2, 3]
    assert report.failed == []
    assert len(report.successful) + len(report.failed) == len(payloads) - len(report.skipped)


@pytest.mark.asyncio
async def test_ingestion_failure_is_recorded(importer, gateway) -> None:
    gateway.fail("upsert", "artists", when=lambda rows: rows[0]["id"] == "artist-2")

    report = await importer.import_batch([_minimal(1), _minimal(2), _minimal(3)])

    assert [item.id for item in report.successful] == ["artist-1", "artist-3"]
    assert report.failed[0].id == "artist-2"
    assert "boom" in report.failed[0].error


@pytest.mark.asyncio
async def test_pacing_between_items_only(importer, sleep) -> None:
    await importer.import_batch([_minimal(1), _minimal(2), _minimal(3)])

    assert sleep.delays == [0.5, 0.5]


@pytest.mark.asyncio
async def test_zero_pacing_never_sleeps(gateway, sleep) -> None:
    importer = BatchImporter(ArtistIngestor(gateway), pacing_ms=0, sleep=sleep)

    await importer.import_batch([_minimal(1), _minimal(2)])

    assert sleep.delays == []


@pytest.mark.asyncio
async def test_full_payloads_import(importer, gateway) -> None:
    report = await importer.import_batch([artist_payload(), artist_payload(id="artist-2", name="Second")])

    assert len(report.successful) == 2
    assert report.total == 2
    assert len(gateway.rows("artist_albums", artist_id="artist-2")) > 0


def test_is_artist_payload() -> None:
    assert is_artist_payload(_minimal(1))
    assert not is_artist_payload(_minimal(1, status="true"))
    assert not is_artist_payload(None)
