"""
Batch import of artist payloads with per-item failure isolation.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from pydantic import BaseModel, Field

from agents.ingestor.agent import ArtistIngestor
from config.settings import settings

logger = logging.getLogger(__name__)


class ImportedArtist(BaseModel):
    id: str
    name: Optional[str] = None


class FailedArtist(BaseModel):
    id: str
    name: Optional[str] = None
    error: str


class BatchReport(BaseModel):
    total: int = 0
    successful: List[ImportedArtist] = Field(default_factory=list)
    failed: List[FailedArtist] = Field(default_factory=list)
    skipped: List[int] = Field(default_factory=list)


def is_artist_payload(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and payload.get("status") is True
        and payload.get("type") == "artist"
    )


class BatchImporter:
    """Runs the ingestor over a list of payloads, one at a time, in input order"""

    def __init__(
        self,
        ingestor: ArtistIngestor,
        pacing_ms: Optional[int] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.ingestor = ingestor
        self.pacing_seconds = (settings.import_pacing_ms if pacing_ms is None else pacing_ms) / 1000
        self.sleep = sleep
        self.logger = logging.getLogger("batch_importer")

    async def import_batch(self, payloads: Sequence[Any]) -> BatchReport:
        report = BatchReport(total=len(payloads))

        for index, payload in enumerate(payloads):
            name = payload.get("name") if isinstance(payload, dict) else None
            raw_id = payload.get("id") if isinstance(payload, dict) else None
            label = f"{index + 1}/{len(payloads)}"

            if not is_artist_payload(payload):
                self.logger.warning(f"⚠️ Skipping invalid artist data at index {index}")
                report.skipped.append(index)
            else:
                self.logger.info(f"Processing artist {label}: {name} ({raw_id})")
                try:
                    result = await self.ingestor.ingest_artist(payload)
                    if result.success:
                        report.successful.append(ImportedArtist(id=result.artist_id, name=name))
                    else:
                        report.failed.append(FailedArtist(id=result.artist_id, name=name, error=result.error or "unknown error"))
                        self.logger.error(f"❌ Failed to process: {name} - {result.error}")
                except Exception as e:
                    report.failed.append(FailedArtist(id=str(raw_id or "unknown"), name=name or "unknown", error=str(e)))
                    self.logger.error(f"❌ Error processing artist {label}: {e}")

            if self.pacing_seconds > 0 and index < len(payloads) - 1:
                await self.sleep(self.pacing_seconds)

        self.logger.info(
            f"Batch finished: {len(report.successful)} ok, {len(report.failed)} failed, "
            f"{len(report.skipped)} skipped of {report.total}"
        )
        return report
