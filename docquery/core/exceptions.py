"""
Custom exceptions for docquery.
"""


class DocQueryError(Exception):
    """Base exception for docquery."""
    pass


class CatalogError(DocQueryError):
    """The index catalog is internally inconsistent."""
    pass


class QueryError(DocQueryError):
    """A query cannot be translated for the backend."""
    pass


class FieldNotFoundError(DocQueryError):
    """A field path does not resolve inside a document."""
    
    def __init__(self, field_path):
        self.field_path = tuple(field_path)
        super().__init__(f"field path not found: {'.'.join(self.field_path)}")


class ExecutionError(DocQueryError):
    """Error raised while running a query against a backend."""
    pass


class QueryCancelledError(ExecutionError):
    """The query was cancelled before the next round trip."""
    pass


class ValidationError(DocQueryError):
    """Input validation error."""
    pass


class StorageError(DocQueryError):
    """Error related to backend storage."""
    pass


class SerializationError(StorageError):
    """Error during document encoding/decoding."""
    pass
