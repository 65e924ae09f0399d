from __future__ import annotations


class StoreError(Exception):
    """Base for failures raised by an `InventoryStore`."""


class StoreReadError(StoreError):
    """Reference data could not be read."""


class StoreWriteError(StoreError):
    """A row's write was rolled back. The message is the store's own."""


class DuplicateKeyError(StoreWriteError):
    """A unique constraint rejected the row."""
