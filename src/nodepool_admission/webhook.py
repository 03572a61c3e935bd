"""Admission contract for managed machine pools: default, validate create, validate update."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from nodepool_admission import defaulting, validation
from nodepool_admission.models import ManagedMachinePool, PoolLister, Violation

log = structlog.get_logger()


@dataclass(frozen=True)
class AdmissionContext:
    """Capabilities injected by the admission dispatcher."""

    lister: PoolLister | None = None


class PoolValidationError(ValueError):
    """Aggregated rejection carrying every violation found for a pool."""

    def __init__(self, pool_name: str, violations: list[Violation]) -> None:
        self.pool_name = pool_name
        self.violations = violations
        detail = "; ".join(str(v) for v in violations)
        super().__init__(f"AzureManagedMachinePool {pool_name!r} is invalid: {detail}")


def default(pool: ManagedMachinePool, ctx: AdmissionContext | None = None) -> ManagedMachinePool:
    """Return the defaulted pool. Defaulting needs no capabilities from ``ctx``."""
    return defaulting.default_pool(pool)


def validate_create(pool: ManagedMachinePool, ctx: AdmissionContext | None = None) -> None:
    """Raise PoolValidationError listing every violation in a new pool."""
    _raise_if_invalid(pool, validation.validate_create(pool), operation="create")


def validate_update(
    new: ManagedMachinePool,
    old: ManagedMachinePool,
    ctx: AdmissionContext | None = None,
) -> None:
    """Raise PoolValidationError listing every violation in an update."""
    lister = ctx.lister if ctx is not None else None
    _raise_if_invalid(new, validation.validate_update(new, old, lister), operation="update")


def _raise_if_invalid(pool: ManagedMachinePool, violations: list[Violation], operation: str) -> None:
    if not violations:
        return
    log.info(
        "pool_rejected",
        pool=pool.metadata.name,
        operation=operation,
        violations=len(violations),
    )
    raise PoolValidationError(pool.metadata.name, violations)
