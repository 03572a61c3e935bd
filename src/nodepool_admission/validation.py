"""Field rules and create/update validation for managed machine pools."""

from __future__ import annotations

import re
from collections.abc import Callable
from operator import attrgetter
from typing import Any

import structlog

from nodepool_admission.models import ManagedMachinePool, ManagedMachinePoolSpec, PoolLister, Violation

log = structlog.get_logger()

# key=value:effect, with the key shaped like a Kubernetes label key.
_TAINT_RE = re.compile(r"[a-zA-Z\d][\w\-./]{0,252}=.{1,63}:(NoSchedule|PreferNoSchedule|NoExecute)", re.ASCII)

# Trailing "*" matches any suffix; everything else must match exactly.
SAFE_UNSAFE_SYSCTLS = ("kernel.shm*", "kernel.msg*", "kernel.sem", "fs.mqueue.*", "net.*")

_VALID_OPERATIONS = {"CREATE", "UPDATE", "DELETE"}


def validate_taint(taint: str) -> bool:
    """Return True when the taint string follows key=value:effect."""
    return _TAINT_RE.fullmatch(taint) is not None


def validate_sysctl(sysctl: str) -> bool:
    """Return True when the sysctl is covered by the unsafe sysctl allowlist."""
    for pattern in SAFE_UNSAFE_SYSCTLS:
        if sysctl == pattern:
            return True
        if pattern.endswith("*") and sysctl.startswith(pattern[:-1]):
            return True
    return False


def _taint_violations(spec: ManagedMachinePoolSpec) -> list[Violation]:
    return [
        Violation(
            field=f"spec.nodeTaints[{index}]",
            message=f"invalid taint {taint!r}, must match key=value:NoSchedule|PreferNoSchedule|NoExecute",
            kind="syntax",
        )
        for index, taint in enumerate(spec.node_taints)
        if not validate_taint(taint)
    ]


def _sysctl_violations(spec: ManagedMachinePoolSpec) -> list[Violation]:
    if spec.kubelet_config is None or spec.kubelet_config.allowed_unsafe_sysctls is None:
        return []
    allowed = ", ".join(SAFE_UNSAFE_SYSCTLS)
    return [
        Violation(
            field=f"spec.kubeletConfig.allowedUnsafeSysctls[{index}]",
            message=f"unsafe sysctl {sysctl!r} is not allowed, must be one of: {allowed}",
            kind="syntax",
        )
        for index, sysctl in enumerate(spec.kubelet_config.allowed_unsafe_sysctls)
        if not validate_sysctl(sysctl)
    ]


def _autoscaling_violations(spec: ManagedMachinePoolSpec) -> list[Violation]:
    scaling = spec.auto_scaling
    if scaling is None:
        return []
    bounds = {"minCount": scaling.min_count, "maxCount": scaling.max_count}
    missing = [name for name, value in bounds.items() if value is None]
    if not missing:
        return []
    msg = f"minCount and maxCount must both be set when autoscaling is enabled, missing: {', '.join(missing)}"
    return [Violation(field="spec.autoScaling", message=msg, kind="pairing")]


def validate_create(pool: ManagedMachinePool) -> list[Violation]:
    """Return every field-level violation in a defaulted pool; empty means valid."""
    spec = pool.spec
    return [*_taint_violations(spec), *_sysctl_violations(spec), *_autoscaling_violations(spec)]


# --- Immutability ---


def _equal(old: Any, new: Any) -> bool:
    return old == new


def _equal_or_false(old: bool | None, new: bool | None) -> bool:
    # Absent feature flags resolve to disabled.
    return bool(old) == bool(new)


def _same_set(old: list[str], new: list[str]) -> bool:
    return set(old) == set(new)


# (field path, selector, unchanged predicate)
IMMUTABLE_FIELDS: tuple[tuple[str, Callable[[ManagedMachinePoolSpec], Any], Callable[[Any, Any], bool]], ...] = (
    ("spec.sku", attrgetter("sku"), _equal),
    ("spec.osDiskSizeGB", attrgetter("os_disk_size_gb"), _equal),
    ("spec.osDiskType", attrgetter("os_disk_type"), _equal),
    ("spec.enableFIPS", attrgetter("enable_fips"), _equal_or_false),
    ("spec.enableNodePublicIP", attrgetter("enable_node_public_ip"), _equal_or_false),
    ("spec.scaleSetPriority", attrgetter("scale_set_priority"), _equal),
    ("spec.maxPods", attrgetter("max_pods"), _equal),
    ("spec.nodeTaints", attrgetter("node_taints"), _same_set),
)


def immutability_violations(new: ManagedMachinePoolSpec, old: ManagedMachinePoolSpec) -> list[Violation]:
    """Diff the immutable fields of two specs, one violation per changed field."""
    violations: list[Violation] = []
    for path, select, unchanged in IMMUTABLE_FIELDS:
        old_value, new_value = select(old), select(new)
        if not unchanged(old_value, new_value):
            violations.append(
                Violation(
                    field=path,
                    message=f"field is immutable, cannot change from {old_value!r} to {new_value!r}",
                    kind="immutability",
                )
            )
    return violations


def system_pool_violations(
    new: ManagedMachinePool,
    old: ManagedMachinePool,
    lister: PoolLister,
) -> list[Violation]:
    """Reject demoting the last System pool of a cluster to User."""
    if old.spec.mode != "System" or new.spec.mode != "User":
        return []
    cluster_name = new.cluster_name
    if not cluster_name:
        log.debug("system_pool_check_skipped", pool=new.metadata.name, reason="missing cluster label")
        return []

    siblings = lister.list_pools(new.metadata.namespace, cluster_name)
    other_system_pools = [
        p for p in siblings if p.metadata.name != new.metadata.name and p.spec.mode == "System"
    ]
    if other_system_pools:
        return []
    return [
        Violation(
            field="spec.mode",
            message=f"cannot change the last System node pool of cluster {cluster_name!r} to User",
            kind="transition",
        )
    ]


def validate_update(
    new: ManagedMachinePool,
    old: ManagedMachinePool,
    lister: PoolLister | None = None,
) -> list[Violation]:
    """Return field-level and transition violations for an update; empty means accepted."""
    violations = validate_create(new)
    violations.extend(immutability_violations(new.spec, old.spec))
    if lister is not None:
        violations.extend(system_pool_violations(new, old, lister))
    return violations


def validate_operation(operation: str) -> None:
    """Validate the admission operation parameter."""
    if operation not in _VALID_OPERATIONS:
        valid = ", ".join(sorted(_VALID_OPERATIONS))
        msg = f"Invalid operation: {operation!r}. Must be one of: {valid}"
        raise ValueError(msg)
