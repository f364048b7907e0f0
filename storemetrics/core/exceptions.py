from typing import Optional
from uuid import UUID


class SyncError(Exception):
    """Base class for errors raised by the sync pipeline."""


class StoreNotFoundError(SyncError):
    def __init__(self, store_id: UUID):
        self.store_id = store_id
        super().__init__(f"Store {store_id} not found")


class StoreNotConnectedError(SyncError):
    def __init__(self, store_id: UUID):
        self.store_id = store_id
        super().__init__(f"Store {store_id} has no platform credentials")


class SyncInProgressError(SyncError):
    def __init__(self, store_id: UUID):
        self.store_id = store_id
        super().__init__(f"Store {store_id} is already syncing")


class FeedError(SyncError):
    """
    A request to the commerce platform failed and was not (or could no longer be) retried.

    `cursor` is the pagination cursor that was being fetched, so an operator can
    resume manually from the logs.
    """

    def __init__(self, message: str, cursor: Optional[str] = None, status_code: Optional[int] = None):
        self.cursor = cursor
        self.status_code = status_code
        super().__init__(message)
