"""Tests for models.py: wire aliases, defaults, schema rejection, output models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from nodepool_admission.models import (
    POOL_API_VERSION,
    POOL_KIND,
    AutoScaling,
    ManagedMachinePool,
    ManagedMachinePoolSpec,
    ToolError,
    ValidationOutput,
    Violation,
)


class TestManagedMachinePool:
    def test_parses_camel_case_manifest(self, manifest_factory: Any) -> None:
        manifest = manifest_factory(
            enableFIPS=True,
            enableNodePublicIP=False,
            osDiskType="Ephemeral",
            scaleSetPriority="Spot",
            maxPods=30,
            autoScaling={"minCount": 1, "maxCount": 3},
            kubeletConfig={"allowedUnsafeSysctls": ["net.*"]},
        )
        pool = ManagedMachinePool.model_validate(manifest)
        spec = pool.spec
        assert spec.os_disk_size_gb == 512
        assert spec.enable_fips is True
        assert spec.enable_node_public_ip is False
        assert spec.os_disk_type == "Ephemeral"
        assert spec.scale_set_priority == "Spot"
        assert spec.max_pods == 30
        assert spec.auto_scaling == AutoScaling(min_count=1, max_count=3)
        assert spec.kubelet_config is not None
        assert spec.kubelet_config.allowed_unsafe_sysctls == ["net.*"]

    def test_accepts_snake_case_names(self) -> None:
        spec = ManagedMachinePoolSpec(mode="User", sku="StandardD2S_V3", os_disk_size_gb=128, max_pods=40)
        assert spec.os_disk_size_gb == 128
        assert spec.max_pods == 40

    def test_optional_fields_default_to_absent(self) -> None:
        spec = ManagedMachinePoolSpec(mode="System", sku="StandardD2S_V3")
        assert spec.name is None
        assert spec.enable_fips is None
        assert spec.enable_node_public_ip is None
        assert spec.node_taints == []
        assert spec.auto_scaling is None

    def test_node_taints_not_shared_between_instances(self) -> None:
        first = ManagedMachinePoolSpec(mode="User", sku="a")
        second = ManagedMachinePoolSpec(mode="User", sku="b")
        first.node_taints.append("key1=value1:NoSchedule")
        assert second.node_taints == []

    def test_type_metadata_defaults(self, manifest_factory: Any) -> None:
        manifest = manifest_factory()
        del manifest["apiVersion"]
        del manifest["kind"]
        pool = ManagedMachinePool.model_validate(manifest)
        assert pool.api_version == POOL_API_VERSION
        assert pool.kind == POOL_KIND
        assert pool.metadata.namespace == "default"

    def test_cluster_name_from_label(self, pool_factory: Any) -> None:
        assert pool_factory(cluster_name="fooCluster").cluster_name == "fooCluster"
        assert pool_factory(cluster_name=None).cluster_name is None

    def test_invalid_mode_rejected(self, manifest_factory: Any) -> None:
        with pytest.raises(ValidationError):
            ManagedMachinePool.model_validate(manifest_factory(mode="Primary"))

    def test_invalid_os_disk_type_rejected(self, manifest_factory: Any) -> None:
        with pytest.raises(ValidationError):
            ManagedMachinePool.model_validate(manifest_factory(osDiskType="Premium"))

    def test_missing_sku_rejected(self, manifest_factory: Any) -> None:
        manifest = manifest_factory()
        del manifest["spec"]["sku"]
        with pytest.raises(ValidationError):
            ManagedMachinePool.model_validate(manifest)

    def test_malformed_taints_are_kept_for_validation(self, manifest_factory: Any) -> None:
        pool = ManagedMachinePool.model_validate(manifest_factory(nodeTaints=["not a taint"]))
        assert pool.spec.node_taints == ["not a taint"]

    def test_null_taints_read_as_empty(self, manifest_factory: Any) -> None:
        manifest = manifest_factory()
        manifest["spec"]["nodeTaints"] = None
        pool = ManagedMachinePool.model_validate(manifest)
        assert pool.spec.node_taints == []

    def test_unknown_fields_ignored(self, manifest_factory: Any) -> None:
        manifest = manifest_factory(subnetName="nodes")
        manifest["status"] = {"ready": True}
        pool = ManagedMachinePool.model_validate(manifest)
        assert pool.spec.sku == "StandardD2S_V3"


class TestViolation:
    def test_str(self) -> None:
        violation = Violation(field="spec.maxPods", message="field is immutable", kind="immutability")
        assert str(violation) == "spec.maxPods: field is immutable"

    def test_invalid_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Violation(field="spec.sku", message="x", kind="fatal")  # type: ignore[arg-type]


class TestToolError:
    def test_partial_data_default_false(self) -> None:
        error = ToolError(error="Connection refused", source="k8s-api", pool="pool0")
        assert error.partial_data is False


class TestValidationOutput:
    def test_defaults(self) -> None:
        output = ValidationOutput(
            operation="CREATE",
            name="pool0",
            allowed=True,
            summary="ok",
            timestamp="2024-01-01T00:00:00+00:00",
        )
        assert output.violations == []
        assert output.errors == []
        assert output.manifest is None

    def test_invalid_operation_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ValidationOutput(
                operation="PATCH",  # type: ignore[arg-type]
                name="pool0",
                allowed=True,
                summary="ok",
                timestamp="2024-01-01T00:00:00+00:00",
            )
