"""
Domain errors for the billing core.

Every failure is scoped to one document operation. The HTTP layer maps
each class to a status code via ``status_code``.
"""
from typing import Dict, Optional


class BillingError(Exception):
    """Base exception for billing core errors."""
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(BillingError):
    """Referenced document or client does not exist."""
    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} {entity_id} not found",
            {"entity": entity, "id": str(entity_id)},
        )


class DocumentNumberConflict(BillingError):
    """A document with the requested number already exists."""
    status_code = 409

    def __init__(self, document_type: str, number: str):
        self.document_type = document_type
        self.number = number
        super().__init__(
            f"{document_type.title()} number {number} already exists.",
            {"document_type": document_type, "number": number},
        )


class TransientContention(BillingError):
    """Isolation or lock conflict. Safe to retry the whole operation."""
    status_code = 503
    retryable = True


class ConfigurationMissing(BillingError):
    """Required configuration (company profile, settings) is absent."""
    status_code = 500


class ValidationError(BillingError):
    """Malformed input or an illegal state change."""
    status_code = 422
