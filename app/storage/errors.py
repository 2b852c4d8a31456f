"""Storage-level errors

Every engine-specific "missing document" shape is turned into
``DocumentNotFoundError`` so callers compare against one type.
"""


class StorageError(Exception):
    """Base class for document store failures"""


class DocumentNotFoundError(StorageError):
    """No document under the requested key"""

    def __init__(self, key: str):
        super().__init__(f"document not found: {key}")
        self.key = key


class DocumentExistsError(StorageError):
    """Insert collided with an existing key"""

    def __init__(self, key: str):
        super().__init__(f"document already exists: {key}")
        self.key = key


class NotConnectedError(StorageError):
    """Store handle used before connect() or after close()"""


class QueryUnavailableError(StorageError):
    """The native query engine is switched off or failed its probe"""
