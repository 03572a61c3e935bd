"""Pydantic v2 models for managed machine pools, violations, and tool outputs."""

from __future__ import annotations

from typing import Literal, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator

PoolMode = Literal["System", "User"]
OsDiskType = Literal["Managed", "Ephemeral"]
ScaleSetPriority = Literal["Regular", "Spot"]
ViolationKind = Literal["syntax", "pairing", "immutability", "transition"]

POOL_API_VERSION = "infrastructure.cluster.x-k8s.io/v1beta1"
POOL_KIND = "AzureManagedMachinePool"

# Owned by the defaulter; mirrors spec.mode.
LABEL_AGENT_POOL_MODE = "agentpool-mode"
# Set by Cluster API on every pool; read to find sibling pools.
LABEL_CLUSTER_NAME = "cluster.x-k8s.io/cluster-name"


class _WireModel(BaseModel):
    """Base for models that are read from and written to camelCase manifests."""

    model_config = ConfigDict(populate_by_name=True)


# --- Machine pool resource ---


class AutoScaling(_WireModel):
    """Autoscaler bounds; both counts must be set together."""

    min_count: int | None = Field(default=None, alias="minCount")
    max_count: int | None = Field(default=None, alias="maxCount")


class KubeletConfig(_WireModel):
    """Kubelet tuning applied to every node in the pool."""

    allowed_unsafe_sysctls: list[str] | None = Field(default=None, alias="allowedUnsafeSysctls")


class ManagedMachinePoolSpec(_WireModel):
    """Desired state of a managed node pool."""

    mode: PoolMode
    sku: str
    os_disk_size_gb: int | None = Field(default=None, alias="osDiskSizeGB")
    os_disk_type: OsDiskType | None = Field(default=None, alias="osDiskType")
    name: str | None = None
    enable_fips: bool | None = Field(default=None, alias="enableFIPS")
    enable_node_public_ip: bool | None = Field(default=None, alias="enableNodePublicIP")
    scale_set_priority: ScaleSetPriority | None = Field(default=None, alias="scaleSetPriority")
    max_pods: int | None = Field(default=None, alias="maxPods")
    # Kept as raw strings so malformed entries reach the validators.
    node_taints: list[str] = Field(default_factory=list, alias="nodeTaints")
    auto_scaling: AutoScaling | None = Field(default=None, alias="autoScaling")
    kubelet_config: KubeletConfig | None = Field(default=None, alias="kubeletConfig")

    @field_validator("node_taints", mode="before")
    @classmethod
    def _null_taints_are_empty(cls, value: object) -> object:
        return [] if value is None else value


class ObjectMeta(_WireModel):
    """The subset of Kubernetes object metadata the admission engine reads."""

    name: str
    namespace: str = "default"
    labels: dict[str, str] = Field(default_factory=dict)


class ManagedMachinePool(_WireModel):
    """An AzureManagedMachinePool resource: metadata plus spec."""

    api_version: str = Field(default=POOL_API_VERSION, alias="apiVersion")
    kind: str = POOL_KIND
    metadata: ObjectMeta
    spec: ManagedMachinePoolSpec

    @property
    def cluster_name(self) -> str | None:
        """Name of the owning cluster, taken from the Cluster API label."""
        return self.metadata.labels.get(LABEL_CLUSTER_NAME)


class PoolLister(Protocol):
    """Read-only query for the pools that share a cluster with a given pool."""

    def list_pools(self, namespace: str, cluster_name: str) -> list[ManagedMachinePool]: ...


# --- Violations ---


class Violation(BaseModel):
    """A single reason a pool spec, or a change to it, is rejected."""

    field: str
    message: str
    kind: ViolationKind

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


# --- Shared error model ---


class ToolError(BaseModel):
    """Structured error returned alongside partial tool results."""

    error: str
    source: str
    pool: str
    partial_data: bool = False


# --- Tool outputs ---


class DefaultOutput(BaseModel):
    """Output for default_node_pool."""

    name: str
    manifest: dict[str, object]
    summary: str
    timestamp: str


class ValidationOutput(BaseModel):
    """Output for the node pool validation and review tools."""

    operation: Literal["CREATE", "UPDATE", "DELETE"]
    name: str
    allowed: bool
    violations: list[Violation] = Field(default_factory=list)
    manifest: dict[str, object] | None = None
    summary: str
    timestamp: str
    errors: list[ToolError] = Field(default_factory=list)
