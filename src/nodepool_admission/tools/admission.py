"""Admission handlers — default, validate create, validate update, and review by operation."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Literal

import structlog

from nodepool_admission import webhook
from nodepool_admission.clients.pool_lister import K8sPoolLister, StaticPoolLister
from nodepool_admission.config import load_admission_config
from nodepool_admission.models import DefaultOutput, ManagedMachinePool, ToolError, ValidationOutput, Violation
from nodepool_admission.utils import dump_pool_manifest, parse_pool_manifest
from nodepool_admission.validation import validate_operation

log = structlog.get_logger()

Operation = Literal["CREATE", "UPDATE", "DELETE"]


def _now() -> str:
    return datetime.now(tz=UTC).isoformat()


def _validation_output(
    operation: Operation,
    pool: ManagedMachinePool,
    violations: list[Violation],
    errors: list[ToolError],
    manifest: dict[str, object] | None = None,
) -> ValidationOutput:
    name = pool.metadata.name
    verb = operation.lower()
    if violations:
        summary = f"Node pool {name} rejected for {verb}: {len(violations)} violation(s)"
    else:
        summary = f"Node pool {name} accepted for {verb}"
    return ValidationOutput(
        operation=operation,
        name=name,
        allowed=not violations,
        violations=violations,
        manifest=manifest,
        summary=summary,
        timestamp=_now(),
        errors=errors,
    )


async def _sibling_context(
    new: ManagedMachinePool,
    old: ManagedMachinePool,
) -> tuple[webhook.AdmissionContext, list[ToolError]]:
    """Snapshot the cluster's pools when an update demotes a System pool."""
    if old.spec.mode != "System" or new.spec.mode != "User":
        return webhook.AdmissionContext(), []

    config = load_admission_config()
    cluster_name = new.cluster_name
    if not config.lookup_enabled or not cluster_name:
        return webhook.AdmissionContext(), []

    lister = K8sPoolLister(config.kubeconfig_context)
    try:
        pools = await asyncio.to_thread(lister.list_pools, new.metadata.namespace, cluster_name)
    except Exception:
        error = ToolError(
            error="Sibling pool lookup unavailable; system pool check skipped",
            source="k8s-api",
            pool=new.metadata.name,
            partial_data=True,
        )
        return webhook.AdmissionContext(), [error]
    return webhook.AdmissionContext(lister=StaticPoolLister(pools)), []


async def default_pool_handler(manifest: str) -> DefaultOutput:
    """Core handler for default_node_pool."""
    pool = webhook.default(parse_pool_manifest(manifest))
    return DefaultOutput(
        name=pool.metadata.name,
        manifest=dump_pool_manifest(pool),
        summary=f"Defaulted node pool {pool.metadata.name} ({pool.spec.mode})",
        timestamp=_now(),
    )


async def validate_create_handler(manifest: str) -> ValidationOutput:
    """Default then validate a new pool, the way the dispatcher does on create."""
    pool = webhook.default(parse_pool_manifest(manifest))
    violations: list[Violation] = []
    try:
        webhook.validate_create(pool)
    except webhook.PoolValidationError as e:
        violations = e.violations
    return _validation_output("CREATE", pool, violations, errors=[], manifest=dump_pool_manifest(pool))


async def validate_update_handler(manifest: str, old_manifest: str) -> ValidationOutput:
    """Validate a pool update against the previously admitted version."""
    new = parse_pool_manifest(manifest)
    old = parse_pool_manifest(old_manifest)
    if new.metadata.name != old.metadata.name:
        msg = f"Old manifest is for pool {old.metadata.name!r}, not {new.metadata.name!r}."
        raise ValueError(msg)

    ctx, errors = await _sibling_context(new, old)
    violations: list[Violation] = []
    try:
        webhook.validate_update(new, old, ctx)
    except webhook.PoolValidationError as e:
        violations = e.violations
    return _validation_output("UPDATE", new, violations, errors=errors)


async def review_handler(operation: str, manifest: str, old_manifest: str | None = None) -> ValidationOutput:
    """Dispatch one admission request by operation.

    CREATE defaults then validates, UPDATE validates the transition, and
    DELETE is always allowed.
    """
    validate_operation(operation)
    if operation == "CREATE":
        return await validate_create_handler(manifest)
    if operation == "UPDATE":
        if old_manifest is None:
            msg = "UPDATE review requires old_manifest."
            raise ValueError(msg)
        return await validate_update_handler(manifest, old_manifest)

    pool = parse_pool_manifest(manifest)
    log.debug("delete_not_validated", pool=pool.metadata.name)
    return ValidationOutput(
        operation="DELETE",
        name=pool.metadata.name,
        allowed=True,
        summary=f"Node pool {pool.metadata.name} deletion is not subject to admission checks",
        timestamp=_now(),
    )
