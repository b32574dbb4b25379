"""
Error taxonomy shared by the ingestor, fetcher and ranker agents.
"""

from typing import Optional, Union

from models.gateway import PersistenceError

__all__ = [
    "IngestionError",
    "InvalidPayload",
    "MissingIdentity",
    "MalformedFragment",
    "RefreshFailed",
    "FetchError",
    "PersistenceError",
]


class IngestionError(Exception):
    """Base class for ingestion pipeline errors"""


class InvalidPayload(IngestionError):
    """Top-level artist payload without a usable identity"""


class MissingIdentity(IngestionError):
    """A nested fragment carries no id; the fragment is skipped"""

    def __init__(self, entity: str):
        self.entity = entity
        super().__init__(f"{entity} fragment has no id")


class MalformedFragment(IngestionError):
    """A nested fragment could not be validated"""

    def __init__(self, entity: str, item_id: Optional[str], cause: Union[BaseException, str]):
        self.entity = entity
        self.item_id = item_id
        self.cause = cause
        super().__init__(f"malformed {entity} {item_id or '<unknown>'}: {cause}")


class RefreshFailed(IngestionError):
    """A delete-then-insert refresh of a child collection failed"""

    def __init__(self, entity: str, cause: Union[BaseException, str]):
        self.entity = entity
        self.cause = cause
        super().__init__(f"refresh of {entity} failed: {cause}")


class FetchError(IngestionError):
    """Network or auth failure talking to the upstream API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
