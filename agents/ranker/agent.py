"""
The Ranker Agent - Rebuilds the top-N leaderboard caches
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from config.settings import settings
from models.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


# =============================================================================
# MODELS
# =============================================================================

class RankMetric(BaseModel):
    """Where a leaderboard reads from and where its cache lives"""
    source: str
    field: str
    cache: str
    subject_field: str


METRICS: Dict[str, RankMetric] = {
    "monthly_listeners": RankMetric(
        source="artists", field="monthly_listeners",
        cache="cached_top_artists", subject_field="artist_id",
    ),
    "play_count": RankMetric(
        source="tracks", field="play_count",
        cache="cached_top_tracks", subject_field="track_id",
    ),
}


class MetricOutcome(BaseModel):
    metric: str
    success: bool
    cached: int = 0
    error: Optional[str] = None


class RebuildReport(BaseModel):
    status: str
    message: str
    results: List[MetricOutcome] = Field(default_factory=list)
    timestamp: str


# =============================================================================
# RANKER AGENT
# =============================================================================

class RankCacheUpdater:
    """The Ranker - recomputes cached leaderboards from the stored entities"""

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self.logger = logging.getLogger("ranker_agent")

    async def rebuild_rank_cache(self, metric: str, limit: int) -> int:
        """Replace the metric's cache with the current top `limit`; returns rows cached"""
        spec = METRICS.get(metric)
        if spec is None:
            raise ValueError(f"Unknown rank metric: {metric}")

        self.logger.info(f"Updating top {limit} {spec.source} by {spec.field}...")

        rows = await self.gateway.select_where(
            spec.source,
            order_by=spec.field,
            descending=True,
            limit=limit,
            exclude_nulls=(spec.field,),
        )

        entries: List[Dict[str, Any]] = []
        for position, row in enumerate(rows, start=1):
            if not row or not row.get("id") or row.get(spec.field) is None:
                self.logger.warning(f"Skipping invalid {spec.source} row at position {position}: {row}")
                continue
            entries.append({spec.subject_field: row["id"], "rank": len(entries) + 1})
            self.logger.debug(f"Rank #{len(entries)}: {row.get('name')} ({row['id']}) - {row[spec.field]} {spec.field}")

        # Read first so a failed read leaves the previous cache in place
        await self.gateway.delete_where(spec.cache, {})
        if entries:
            await self.gateway.insert_many(spec.cache, entries)

        self.logger.info(f"✅ Cached {len(entries)} {spec.source} by {spec.field}")
        return len(entries)

    async def rebuild_all(
        self,
        artist_limit: Optional[int] = None,
        track_limit: Optional[int] = None,
    ) -> RebuildReport:
        """Rebuild both leaderboards; one failing does not stop the other"""
        limits = {
            "monthly_listeners": settings.cache_top_artists_limit if artist_limit is None else artist_limit,
            "play_count": settings.cache_top_tracks_limit if track_limit is None else track_limit,
        }

        outcomes = []
        for metric, limit in limits.items():
            try:
                cached = await self.rebuild_rank_cache(metric, limit)
                outcomes.append(MetricOutcome(metric=metric, success=True, cached=cached))
            except Exception as e:
                self.logger.error(f"Error updating {metric} cache: {e}")
                outcomes.append(MetricOutcome(metric=metric, success=False, error=str(e)))

        succeeded = sum(1 for o in outcomes if o.success)
        if succeeded == len(outcomes):
            status, message = "success", "Cache updated successfully"
        elif succeeded:
            status, message = "partial", "Cache partially updated"
        else:
            status, message = "error", "; ".join(o.error or "" for o in outcomes)

        return RebuildReport(
            status=status,
            message=message,
            results=outcomes,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )


# =============================================================================
# CLI
# =============================================================================

async def main():
    """CLI entry point"""
    import argparse
    from models.database import AsyncSessionLocal
    from models.gateway import SqlAlchemyGateway

    parser = argparse.ArgumentParser(description="Ranker Agent - Leaderboard cache rebuild")
    parser.add_argument('--artists', type=int, default=settings.cache_top_artists_limit, help='Top artists to cache')
    parser.add_argument('--tracks', type=int, default=settings.cache_top_tracks_limit, help='Top tracks to cache')
    parser.add_argument('--log-level', default=settings.log_level)

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    ranker = RankCacheUpdater(SqlAlchemyGateway(AsyncSessionLocal))
    report = await ranker.rebuild_all(args.artists, args.tracks)
    for outcome in report.results:
        marker = "✅" if outcome.success else "❌"
        print(f"{marker} {outcome.metric}: {outcome.cached if outcome.success else outcome.error}")


if __name__ == "__main__":
    asyncio.run(main())
