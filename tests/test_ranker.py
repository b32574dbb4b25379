from __future__ import annotations

import pytest

from agents.ranker.agent import RankCacheUpdater
from models.gateway import PersistenceError


@pytest.fixture
def ranker(gateway) -> RankCacheUpdater:
    return RankCacheUpdater(gateway)


def _seed_artists(gateway) -> None:
    gateway.tables["artists"] = [
        {"id": "A", "name": "A", "monthly_listeners": 500},
        {"id": "B", "name": "B", "monthly_listeners": 900},
        {"id": "C", "name": "C", "monthly_listeners": 100},
        {"id": "D", "name": "D", "monthly_listeners": None},
    ]


@pytest.mark.asyncio
async def test_top_artists_ranked_by_listeners(ranker, gateway) -> None:
    _seed_artists(gateway)

    cached = await ranker.rebuild_rank_cache("monthly_listeners", 2)

    assert cached == 2
    assert gateway.tables["cached_top_artists"] == [
        {"artist_id": "B", "rank": 1},
        {"artist_id": "A", "rank": 2},
    ]


@pytest.mark.asyncio
async def test_rebuild_replaces_previous_cache(ranker, gateway) -> None:
    _seed_artists(gateway)
    gateway.tables["cached_top_artists"] = [{"artist_id": "stale", "rank": 1}]

    await ranker.rebuild_rank_cache("monthly_listeners", 10)

    assert [r["artist_id"] for r in gateway.tables["cached_top_artists"]] == ["B", "A", "C"]
    assert [r["rank"] for r in gateway.tables["cached_top_artists"]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_invalid_rows_keep_ranks_consecutive(ranker, gateway) -> None:
    gateway.tables["tracks"] = [
        {"id": "t1", "play_count": 30},
        {"id": "", "play_count": 20},
        {"id": "t3", "play_count": 10},
    ]

    await ranker.rebuild_rank_cache("play_count", 3)

    assert gateway.tables["cached_top_tracks"] == [
        {"track_id": "t1", "rank": 1},
        {"track_id": "t3", "rank": 2},
    ]


@pytest.mark.asyncio
async def test_failed_read_keeps_previous_cache(ranker, gateway) -> None:
    gateway.tables["cached_top_artists"] = [{"artist_id": "kept", "rank": 1}]
    gateway.fail("select", "artists")

    with pytest.raises(PersistenceError):
        await ranker.rebuild_rank_cache("monthly_listeners", 5)

    assert gateway.tables["cached_top_artists"] == [{"artist_id": "kept", "rank": 1}]


@pytest.mark.asyncio
async def test_unknown_metric(ranker) -> None:
    with pytest.raises(ValueError):
        await ranker.rebuild_rank_cache("followers", 5)


@pytest.mark.asyncio
async def test_rebuild_all_success(ranker, gateway) -> None:
    _seed_artists(gateway)
    gateway.tables["tracks"] = [{"id": "t1", "play_count": 5}]

    report = await ranker.rebuild_all(artist_limit=2, track_limit=2)

    assert report.status == "success"
    assert [(o.metric, o.cached) for o in report.results] == [("monthly_listeners", 2), ("play_count", 1)]


@pytest.mark.asyncio
async def test_one_metric_failing_does_not_stop_the_other(ranker, gateway) -> None:
    gateway.tables["tracks"] = [{"id": "t1", "play_count": 5}]
    gateway.fail("select", "artists")

    report = await ranker.rebuild_all(artist_limit=2, track_limit=2)

    assert report.status == "partial"
    assert report.results[0].success is False
    assert gateway.tables["cached_top_tracks"] == [{"track_id": "t1", "rank": 1}]


@pytest.mark.asyncio
async def test_all_metrics_failing_is_error(ranker, gateway) -> None:
    gateway.fail("select", "artists")
    gateway.fail("select", "tracks")

    report = await ranker.rebuild_all()

    assert report.status == "error"
    assert "artists" in report.message
    assert "tracks" in report.message


@pytest.mark.asyncio
async def test_explicit_zero_limit_is_not_the_default(ranker, gateway) -> None:
    _seed_artists(gateway)
    gateway.tables["cached_top_artists"] = [{"artist_id": "stale", "rank": 1}]

    report = await ranker.rebuild_all(artist_limit=0, track_limit=0)

    assert report.status == "success"
    assert [o.cached for o in report.results] == [0, 0]
    assert gateway.tables["cached_top_artists"] == []
