"""
Typed errors raised by the workflow engines.

Every error carries a machine-readable ``kind``. The HTTP layer maps ``kind``
to a status code in one place (see ``main.py``) and never inspects the
message text.
"""

from typing import Any, Dict, Optional


class FinanceHubError(Exception):
    kind: str = "error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"detail": self.message, "kind": self.kind}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(FinanceHubError):
    """Malformed input: non-positive amount, missing reason or proof, etc."""
    kind = "validation"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, details)
        self.field = field


class ForbiddenError(FinanceHubError):
    """The actor's role (or ownership) does not allow the operation."""
    kind = "forbidden"


class NotFoundError(FinanceHubError):
    kind = "not_found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found", {"entity": entity, "id": entity_id})
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(FinanceHubError):
    """The entity exists but is not in the source state the transition needs."""
    kind = "invalid_transition"

    def __init__(self, message: str, current_status: Optional[str] = None, required_status: Optional[str] = None):
        super().__init__(message, {"current_status": current_status, "required_status": required_status})
        self.current_status = current_status
        self.required_status = required_status


class PersistenceError(FinanceHubError):
    kind = "persistence"
