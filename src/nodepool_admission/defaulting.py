"""Defaulting for managed machine pools, applied once at create time."""

from __future__ import annotations

import structlog

from nodepool_admission.models import LABEL_AGENT_POOL_MODE, ManagedMachinePool

log = structlog.get_logger()


def default_pool(pool: ManagedMachinePool) -> ManagedMachinePool:
    """Return a defaulted copy of the pool.

    Sets the ``agentpool-mode`` label from ``spec.mode`` (always overwritten)
    and fills an absent or empty ``spec.name`` with the resource name. Never
    fails; invalid values are left for the validators.
    """
    defaulted = pool.model_copy(deep=True)
    defaulted.metadata.labels[LABEL_AGENT_POOL_MODE] = defaulted.spec.mode
    if not defaulted.spec.name:
        defaulted.spec.name = defaulted.metadata.name
        log.debug("pool_name_defaulted", pool=defaulted.metadata.name)
    return defaulted
