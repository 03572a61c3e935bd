"""Shared test fixtures and manifest factories for all test modules."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from nodepool_admission.models import LABEL_CLUSTER_NAME, ManagedMachinePool


@pytest.fixture(autouse=True)
def isolated_admission_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep every test away from real config files and kube contexts."""
    monkeypatch.setenv("NODEPOOL_ADMISSION_CONFIG", str(tmp_path / "missing-admission.yaml"))
    monkeypatch.delenv("NODEPOOL_KUBE_CONTEXT", raising=False)
    monkeypatch.delenv("NODEPOOL_SIBLING_LOOKUP", raising=False)
    monkeypatch.delenv("NODEPOOL_LOG_LEVEL", raising=False)


def make_manifest(
    name: str = "pool0",
    mode: str = "System",
    sku: str = "StandardD2S_V3",
    os_disk_size_gb: int | None = 512,
    namespace: str = "default",
    cluster_name: str | None = "fooCluster",
    labels: dict[str, str] | None = None,
    **spec_fields: Any,
) -> dict[str, Any]:
    """Create an AzureManagedMachinePool manifest dict in its camelCase wire shape.

    Extra keyword arguments are added to ``spec`` as given, so callers pass wire
    names such as ``nodeTaints`` or ``enableFIPS``.
    """
    metadata_labels = dict(labels or {})
    if cluster_name is not None:
        metadata_labels[LABEL_CLUSTER_NAME] = cluster_name
    spec: dict[str, Any] = {"mode": mode, "sku": sku}
    if os_disk_size_gb is not None:
        spec["osDiskSizeGB"] = os_disk_size_gb
    spec.update(spec_fields)
    return {
        "apiVersion": "infrastructure.cluster.x-k8s.io/v1beta1",
        "kind": "AzureManagedMachinePool",
        "metadata": {"name": name, "namespace": namespace, "labels": metadata_labels},
        "spec": spec,
    }


def make_pool(**kwargs: Any) -> ManagedMachinePool:
    """Create a ManagedMachinePool model; accepts the same arguments as make_manifest."""
    return ManagedMachinePool.model_validate(make_manifest(**kwargs))


def to_yaml(manifest: dict[str, Any]) -> str:
    """Render a manifest dict as the YAML text the tools accept."""
    return yaml.safe_dump(manifest, sort_keys=False)


@pytest.fixture
def manifest_factory() -> Any:
    """Factory for manifest dicts; see make_manifest."""
    return make_manifest


@pytest.fixture
def pool_factory() -> Any:
    """Factory for ManagedMachinePool models; see make_pool."""
    return make_pool


@pytest.fixture
def yaml_factory() -> Any:
    """Factory for YAML manifest text built from make_manifest arguments."""

    def _build(**kwargs: Any) -> str:
        return to_yaml(make_manifest(**kwargs))

    return _build
