"""Error taxonomy for the document vault.

Services raise these; the API layer renders them through a single
exception handler so routers never translate errors by hand.
"""

from typing import Any


class DocumentVaultError(Exception):
    """Base exception for document vault errors."""

    error_code = "document_vault_error"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


# Validation (never auto-retried)


class ValidationError(DocumentVaultError):
    error_code = "validation_error"
    status_code = 400


class InvalidDocumentTypeError(ValidationError):
    error_code = "invalid_document_type"

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Invalid document type: {type_name}")


class FileTooLargeError(ValidationError):
    error_code = "file_too_large"

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"File size exceeds maximum allowed size of {max_size} bytes",
            details={"size": size, "max_size": max_size},
        )


class UnsupportedMimeTypeError(ValidationError):
    error_code = "unsupported_mime_type"

    def __init__(self, mime_type: str, allowed: list[str]):
        self.mime_type = mime_type
        self.allowed = allowed
        super().__init__(
            f"Invalid file type '{mime_type}'. Allowed types: {', '.join(allowed)}",
            details={"mime_type": mime_type, "allowed": allowed},
        )


class InvalidFilterError(ValidationError):
    error_code = "invalid_filter"


class DuplicateContentError(DocumentVaultError):
    """Identical bytes already stored for the same entity and document type."""

    error_code = "duplicate_content"
    status_code = 409

    def __init__(self, existing_document_id: Any, file_hash: str):
        self.existing_document_id = existing_document_id
        self.file_hash = file_hash
        super().__init__(
            "Document with identical content already exists",
            details={"existing_document_id": str(existing_document_id)},
        )


# Lookups


class NotFoundError(DocumentVaultError):
    error_code = "not_found"
    status_code = 404
    resource = "Resource"

    def __init__(self, identifier: Any = None, message: str | None = None):
        self.identifier = identifier
        if message is None:
            message = f"{self.resource} not found"
            if identifier is not None:
                message = f"{self.resource} '{identifier}' not found"
        super().__init__(message)


class DocumentNotFoundError(NotFoundError):
    resource = "Document"


class EntityNotFoundError(NotFoundError):
    resource = "Entity"


class DocumentTypeNotFoundError(NotFoundError):
    resource = "Document type"


class StorageError(DocumentVaultError):
    error_code = "storage_error"
    status_code = 500
