"""Exception hierarchy."""

from __future__ import annotations


class RepomapError(Exception):
    """Base class for errors raised by this package."""


class RecordStoreError(RepomapError):
    """The record store could not be reached or failed to answer a lookup."""


class IndexingError(RepomapError):
    """A file could not be collected, summarized, or persisted."""


class UnreadableFileError(IndexingError):
    """A collected file is not readable UTF-8 text."""
