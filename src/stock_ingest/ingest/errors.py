from __future__ import annotations


class UploadAborted(Exception):
    """A batch-fatal condition. No row outcomes are produced for an aborted upload."""


class EmptyFileError(UploadAborted):
    """The file has no header row, or no data rows under it."""


class UnreadableFileError(UploadAborted):
    """The file is missing, not UTF-8, or not parseable as CSV."""


class ResolverInitError(UploadAborted):
    """Reference data (items, categories, suppliers, stock) could not be loaded."""
