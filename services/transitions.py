"""
Role and state guards shared by the reimbursement and direct-expense engines.

Both engines run every transition through ``apply_transition`` so the
"read status, validate, write new status" sequence and its error reporting
are identical for every edge of both state machines.
"""

import math
from typing import Any, Callable, Dict, Optional

from config import config
from constants import ReimbursementStatus, DirectExpenseStatus
from exceptions import ForbiddenError, InvalidTransitionError, NotFoundError, ValidationError
from logging_config import get_logger
from models.user import Actor

logger = get_logger("transitions")

TERMINAL_STATUSES = frozenset({ReimbursementStatus.PAID, ReimbursementStatus.REJECTED,
                               DirectExpenseStatus.PAID, DirectExpenseStatus.REJECTED})


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def assert_role(actor: Actor, *allowed_roles: str, action: str = "perform this action"):
    if actor.role not in allowed_roles:
        raise ForbiddenError(
            f"Forbidden: only {' or '.join(allowed_roles)} can {action}",
            {"role": actor.role, "allowed_roles": list(allowed_roles)},
        )


def assert_transition(current_status: str, required_status: str, actor_role: str, required_role: str,
                      action: str = "transition", entity: str = "entity"):
    """Fail unless the actor holds ``required_role`` and the entity sits in ``required_status``."""
    if actor_role != required_role:
        raise ForbiddenError(
            f"Forbidden: only {required_role} can {action} {entity}",
            {"role": actor_role, "allowed_roles": [required_role]},
        )
    if current_status != required_status:
        raise InvalidTransitionError(
            f"Cannot {action} {entity} with status {current_status}. Must be {required_status}.",
            current_status=current_status,
            required_status=required_status,
        )


def require_text(value: Optional[str], field: str, message: str, min_length: int = 1) -> str:
    text = (value or "").strip()
    if len(text) < min_length:
        raise ValidationError(message, field=field, details={"min_length": min_length})
    return text


def require_rejection_reason(reason: Optional[str], min_length: Optional[int] = None) -> str:
    if min_length is None:
        min_length = config.REJECTION_REASON_MIN_LENGTH
    if min_length <= 1:
        message = "Rejection reason is required"
    else:
        message = f"Rejection reason must be at least {min_length} characters"
    return require_text(reason, "reason", message, min_length)


def require_payment_proof(url: Optional[str]) -> str:
    return require_text(url, "payment_proof_url", "Payment proof required")


def require_positive_amount(amount) -> float:
    if amount is None or not math.isfinite(amount) or amount <= 0:
        raise ValidationError("Amount must be positive", field="amount")
    return float(amount)


def check_pagination(page: int, limit: int):
    if page < 1:
        raise ValidationError("Page must be at least 1", field="page")
    if limit < 1 or limit > config.MAX_PAGE_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {config.MAX_PAGE_LIMIT}", field="limit")


async def apply_transition(
    repository,
    entity_id: str,
    actor: Actor,
    *,
    required_status: str,
    target_status: str,
    required_role: str,
    action: str,
    fields: Dict[str, Any],
    guard: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> Dict[str, Any]:
    entity = repository.entity_name.lower()
    assert_role(actor, required_role, action=f"{action} {entity}")

    current = await repository.find_by_id(entity_id)
    if current is None:
        raise NotFoundError(repository.entity_name, entity_id)

    assert_transition(current["status"], required_status, actor.role, required_role, action=action, entity=entity)
    if guard is not None:
        guard(current)

    updated = await repository.update(
        entity_id,
        {**fields, "status": target_status},
        expected_status=required_status,
    )
    if updated is None:
        # Status moved between our read and the conditional write
        latest = await repository.find_by_id(entity_id)
        if latest is None:
            raise NotFoundError(repository.entity_name, entity_id)
        logger.warning(
            f"{repository.entity_name} {action} lost a concurrent update",
            extra={"data": {"id": entity_id, "expected": required_status, "found": latest["status"]}}
        )
        raise InvalidTransitionError(
            f"Cannot {action} {entity} with status {latest['status']}. Must be {required_status}.",
            current_status=latest["status"],
            required_status=required_status,
        )

    logger.info(
        f"{repository.entity_name} {required_status} -> {target_status}",
        extra={"data": {"id": entity_id, "action": action, "actor_id": actor.id, "actor_role": actor.role}}
    )
    return updated
