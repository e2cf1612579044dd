"""Audit logging helpers for state-changing actions.

``record_action`` appends one audit entry for an actor; ``audited`` wraps a
service method so its primary mutation is committed first and the audit
entry is appended right after it.
"""
from functools import wraps
from typing import Any, Callable, NamedTuple, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_admin.exceptions import AuditWriteError, PersistenceError, UnauthenticatedError
from catalog_admin.metrics import audit_entries_total, audit_write_failures_total
from catalog_admin.models.audit_log import AuditAction, AuditLog
from catalog_admin.schemas.audit_log import AuditLogCreate
from catalog_admin.services.audit_service import AuditLogService

logger = structlog.get_logger(__name__)


class AuditOutcome(NamedTuple):
    """What an audited method hands back to the ``audited`` wrapper."""

    value: Any
    details: dict[str, Any]
    product_id: Optional[int] = None


async def record_action(
    db: AsyncSession,
    actor: dict,
    action: AuditAction,
    product_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    fatal: bool = True,
) -> Optional[AuditLog]:
    """
    Append and commit an audit entry attributed to ``actor``.

    The actor's email is copied onto the entry as it is at call time.

    Args:
        db: Database session; any primary mutation must already be committed
        actor: Authenticated user dict with ``id`` and ``email``
        action: Action performed
        product_id: Product the action applied to, if any
        details: Action-specific payload
        fatal: Raise AuditWriteError on failure instead of only logging it

    Returns:
        The stored entry, or None when a non-fatal write failed
    """
    service = AuditLogService(db)

    try:
        entry = await service.append(
            AuditLogCreate(
                user_id=actor.get("id"),
                user_email=actor["email"],
                action=action,
                product_id=product_id,
                details=details,
            )
        )
        await db.commit()
    except PersistenceError as e:
        await db.rollback()
        audit_write_failures_total.labels(action=action.value).inc()

        if not fatal:
            logger.warning(
                "audit_log_failed",
                action=action.value,
                user_id=actor.get("id"),
                product_id=product_id,
                error=str(e.__cause__ or e),
            )
            return None

        logger.error(
            "audit_log_failed",
            action=action.value,
            user_id=actor.get("id"),
            product_id=product_id,
            error=str(e.__cause__ or e),
        )
        raise AuditWriteError() from e

    audit_entries_total.labels(action=action.value).inc()
    return entry


def audited(action: AuditAction, fatal: bool = True):
    """
    Decorator for service methods that perform an audited mutation.

    The wrapped method receives ``actor`` as a keyword argument and returns an
    ``AuditOutcome``. The wrapper commits the method's mutation, then appends
    the audit entry, and returns ``outcome.value``. If the method raises, no
    audit entry is written. If the audit write fails the mutation stays
    committed.

    Usage:
        @audited(AuditAction.DELETE)
        async def delete_product(self, product_id: int, actor: dict) -> AuditOutcome:
            product = await self.products.get_product(product_id)
            ...
            return AuditOutcome(product, {"product_name": product.name}, product.id)

    Args:
        action: Action recorded for every successful call
        fatal: Whether an audit write failure is raised to the caller
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(self, *args, actor: Optional[dict] = None, **kwargs):
            if not actor:
                raise UnauthenticatedError("User not authenticated")

            outcome: AuditOutcome = await func(self, *args, actor=actor, **kwargs)
            await self.db.commit()

            await record_action(
                self.db,
                actor=actor,
                action=action,
                product_id=outcome.product_id,
                details=outcome.details,
                fatal=fatal,
            )

            return outcome.value

        return wrapper
    return decorator
