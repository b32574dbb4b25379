from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import models  # noqa: F401  registers every table on Base.metadata
from agents.ingestor.agent import ArtistIngestor
from agents.ranker.agent import RankCacheUpdater
from models.database import Base
from models.gateway import PersistenceError, SqlAlchemyGateway
from sample_payloads import artist_payload

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


# pytest-asyncio strict mode requires explicit async fixtures.
@pytest_asyncio.fixture
async def sql_gateway(tmp_path):
    pytest.importorskip("aiosqlite")
    # A file database so every gateway session sees the same data
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'atlas.db'}")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield SqlAlchemyGateway(async_sessionmaker(engine, expire_on_commit=False))
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_upsert_inserts_then_updates(sql_gateway) -> None:
    await sql_gateway.upsert("artists", {"id": "a", "name": "Old", "followers": 1, "last_updated": NOW}, ["id"])
    await sql_gateway.upsert("artists", {"id": "a", "name": "New", "followers": 2, "last_updated": NOW}, ["id"])

    rows = await sql_gateway.select_where("artists", {"id": "a"})
    assert len(rows) == 1
    assert rows[0]["name"] == "New"
    assert rows[0]["followers"] == 2


@pytest.mark.asyncio
async def test_stub_upsert_leaves_other_columns(sql_gateway) -> None:
    await sql_gateway.upsert(
        "artists", {"id": "a", "name": "Full", "biography": "Long story", "monthly_listeners": 99}, ["id"]
    )
    await sql_gateway.upsert("artists", {"id": "a", "name": "Stub"}, ["id"])

    row = (await sql_gateway.select_where("artists", {"id": "a"}))[0]
    assert row["name"] == "Stub"
    assert row["biography"] == "Long story"
    assert row["monthly_listeners"] == 99


@pytest.mark.asyncio
async def test_upsert_mixed_column_sets_and_duplicates(sql_gateway) -> None:
    count = await sql_gateway.upsert(
        "artists",
        [
            {"id": "a", "name": "first"},
            {"id": "b", "name": "B", "followers": 5},
            {"id": "a", "name": "last"},
        ],
        ["id"],
    )

    assert count == 2
    rows = {r["id"]: r for r in await sql_gateway.select_where("artists")}
    assert rows["a"]["name"] == "last"
    assert rows["b"]["followers"] == 5


@pytest.mark.asyncio
async def test_upsert_without_update_keeps_existing(sql_gateway) -> None:
    await sql_gateway.upsert("artists", [{"id": "a"}], ["id"])
    await sql_gateway.upsert("tracks", [{"id": "t"}], ["id"])
    keys = ["artist_id", "track_id"]
    await sql_gateway.upsert(
        "artist_tracks", {"artist_id": "a", "track_id": "t", "is_primary": True, "is_top_track": True}, keys
    )

    await sql_gateway.upsert(
        "artist_tracks",
        {"artist_id": "a", "track_id": "t", "is_primary": False, "is_top_track": False},
        keys,
        update_existing=False,
    )

    rows = await sql_gateway.select_where("artist_tracks")
    assert len(rows) == 1
    assert rows[0]["is_primary"] is True


@pytest.mark.asyncio
async def test_delete_where_scopes_by_filters(sql_gateway) -> None:
    await sql_gateway.upsert("artists", [{"id": "a"}, {"id": "b"}], ["id"])
    await sql_gateway.insert_many("artist_external_links", [
        {"artist_id": "a", "name": "x", "url": "https://x"},
        {"artist_id": "a", "name": "y", "url": "https://y"},
        {"artist_id": "b", "name": "z", "url": "https://z"},
    ])

    deleted = await sql_gateway.delete_where("artist_external_links", {"artist_id": "a"})

    assert deleted == 2
    remaining = await sql_gateway.select_where("artist_external_links")
    assert [r["name"] for r in remaining] == ["z"]


@pytest.mark.asyncio
async def test_select_orders_limits_and_excludes_nulls(sql_gateway) -> None:
    await sql_gateway.upsert("artists", [
        {"id": "a", "monthly_listeners": 500},
        {"id": "b", "monthly_listeners": 900},
        {"id": "c", "monthly_listeners": 100},
    ], ["id"])
    await sql_gateway.upsert("artists", {"id": "d", "monthly_listeners": None}, ["id"])

    rows = await sql_gateway.select_where(
        "artists", order_by="monthly_listeners", descending=True, limit=3, exclude_nulls=("monthly_listeners",)
    )

    assert [r["id"] for r in rows] == ["b", "a", "c"]


@pytest.mark.asyncio
async def test_unknown_collection_and_column(sql_gateway) -> None:
    with pytest.raises(PersistenceError) as excinfo:
        await sql_gateway.insert_many("nope", [{"id": "x"}])
    assert excinfo.value.collection == "nope"

    with pytest.raises(PersistenceError):
        await sql_gateway.delete_where("artists", {"nope": 1})


@pytest.mark.asyncio
async def test_constraint_violation_is_persistence_error(sql_gateway) -> None:
    with pytest.raises(PersistenceError):
        await sql_gateway.insert_many("artist_images", [
            {"artist_id": "a", "image_type": "banner", "url": "https://x", "image_index": 0}
        ])


@pytest.mark.asyncio
async def test_ingest_and_rank_against_sqlite(sql_gateway) -> None:
    ingestor = ArtistIngestor(sql_gateway, album_concurrency=1)

    first = await ingestor.ingest_artist(artist_payload())
    second = await ingestor.ingest_artist(artist_payload())

    assert first.success is True
    assert second.success is True
    assert second.failed_items == []
    assert len(await sql_gateway.select_where("album_images", {"album_id": "album-1"})) == 2
    assert len(await sql_gateway.select_where("artist_images", {"artist_id": "artist-1"})) == 5
    assert len(await sql_gateway.select_where("artist_albums", {"artist_id": "artist-1"})) == 5

    report = await RankCacheUpdater(sql_gateway).rebuild_all(artist_limit=1, track_limit=5)

    assert report.status == "success"
    top_artist = await sql_gateway.select_where("cached_top_artists")
    assert [(r["artist_id"], r["rank"]) for r in top_artist] == [("artist-1", 1)]
    top_tracks = await sql_gateway.select_where("cached_top_tracks", order_by="rank")
    assert [r["rank"] for r in top_tracks] == [1, 2]
