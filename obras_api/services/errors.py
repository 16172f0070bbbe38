from __future__ import annotations


class DocumentError(Exception):
    """Base class for failures in the document subsystem."""


class UploadValidationError(DocumentError):
    """Rejected input; raised before any storage or database write."""


class OwnerNotFoundError(DocumentError):
    pass


class DocumentNotFoundError(DocumentError):
    pass


class StorageError(DocumentError):
    """The object store refused or failed an operation."""


class StorageNotFoundError(StorageError):
    pass


class StorageConflictError(StorageError):
    """An object already exists at the requested key."""


class RecordStoreError(DocumentError):
    """A database read or write failed."""
