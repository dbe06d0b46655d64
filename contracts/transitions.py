"""
Contract status state machine and idempotency helpers.
"""
import hashlib
import logging
from typing import Optional, Tuple

from api.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


# Terminal states map to an empty list
VALID_TRANSITIONS = {
    'draft': ['pending_signature', 'cancelled'],
    'pending_signature': ['active', 'cancelled'],
    'active': ['cancelled', 'expired'],
    'cancelled': [],
    'expired': [],
}


def validate_status_transition(current_status: str, new_status: str) -> Tuple[bool, Optional[str]]:
    """
    Validate that a contract status transition is allowed.

    Args:
        current_status: Current contract status
        new_status: Proposed new status

    Returns:
        Tuple of (is_valid: bool, error_message: Optional[str])
    """
    allowed_transitions = VALID_TRANSITIONS.get(current_status, [])

    if new_status not in allowed_transitions:
        error_msg = f"Invalid status transition: cannot change from '{current_status}' to '{new_status}'"
        logger.warning(error_msg)
        return (False, error_msg)

    return (True, None)


def ensure_transition(contract, new_status: str) -> None:
    """Raise InvalidTransitionError unless contract may move to new_status."""
    is_valid, error_msg = validate_status_transition(contract.status, new_status)
    if not is_valid:
        raise InvalidTransitionError(f"Contract {contract.pk}: {error_msg}")


def calculate_operation_key(operation: str, contract_id: int, idempotency_key: str) -> str:
    """
    Hash a client-supplied idempotency key into the stored form.

    Scoping the key by operation and contract lets a client reuse one key
    across different contracts without collisions.
    """
    unique_string = f"{operation}:{contract_id}:{idempotency_key}"
    return hashlib.sha256(unique_string.encode()).hexdigest()
