"""
ORM-level append-only enforcement for the kardex.

Kardex lines are the historical record of every stock change.  Once a line
is flushed it is never modified or removed; corrections are new movements
that produce new lines.

SQLAlchemy fires mapper events before UPDATE/DELETE reaches the database:

    session.flush()
         |
         v
    [before_update] --> _check_kardex_line_immutability() --> ImmutabilityViolationError
    [before_delete] --> _check_kardex_line_delete() --------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

Raw SQL and bulk UPDATE statements bypass these listeners.

Usage:
    register_immutability_listeners()    # once at startup

    # Tests that must bypass the check:
    unregister_immutability_listeners()
    ...
    register_immutability_listeners()
"""

from sqlalchemy import event

from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _check_kardex_line_immutability(mapper, connection, target):
    """Prevent any update to a persisted kardex line."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "KardexLine",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="KardexLine",
        entity_id=str(target.id),
        reason="Kardex lines are append-only and cannot be modified",
    )


def _check_kardex_line_delete(mapper, connection, target):
    """Prevent deletion of a persisted kardex line."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "KardexLine",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="KardexLine",
        entity_id=str(target.id),
        reason="Kardex lines are append-only and cannot be deleted",
    )


def register_immutability_listeners():
    """
    Register the append-only event listeners.

    Call after the models are importable and before any database work.
    Registering twice is a no-op.
    """
    from stock_kernel.models.kardex import KardexLineModel

    if not event.contains(KardexLineModel, "before_update", _check_kardex_line_immutability):
        event.listen(KardexLineModel, "before_update", _check_kardex_line_immutability)
    if not event.contains(KardexLineModel, "before_delete", _check_kardex_line_delete):
        event.listen(KardexLineModel, "before_delete", _check_kardex_line_delete)


def _safe_remove_listener(target, event_name, listener_fn):
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove the append-only event listeners.

    WARNING: Only use this in tests that need to violate the rule on purpose.
    """
    from stock_kernel.models.kardex import KardexLineModel

    _safe_remove_listener(KardexLineModel, "before_update", _check_kardex_line_immutability)
    _safe_remove_listener(KardexLineModel, "before_delete", _check_kardex_line_delete)
