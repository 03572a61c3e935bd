"""Sibling pool lookups: Kubernetes CustomObjects API wrapper and in-memory snapshot."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog
from kubernetes import client as k8s_client
from pydantic import ValidationError

from nodepool_admission.clients import load_custom_objects_api
from nodepool_admission.models import LABEL_CLUSTER_NAME, ManagedMachinePool

log = structlog.get_logger()

POOL_GROUP = "infrastructure.cluster.x-k8s.io"
POOL_VERSION = "v1beta1"
POOL_PLURAL = "azuremanagedmachinepools"


class K8sPoolLister:
    """Lists AzureManagedMachinePool objects that belong to one cluster."""

    def __init__(self, kubeconfig_context: str) -> None:
        self._kubeconfig_context = kubeconfig_context
        self._api: k8s_client.CustomObjectsApi | None = None

    def _get_api(self) -> k8s_client.CustomObjectsApi:
        if self._api is None:
            self._api = load_custom_objects_api(self._kubeconfig_context)
        return self._api

    def list_pools(self, namespace: str, cluster_name: str) -> list[ManagedMachinePool]:
        """List the pools in a namespace labelled with the given cluster name.

        Objects that do not fit the pool schema are skipped with a warning.
        """
        api = self._get_api()
        try:
            response: dict[str, Any] = api.list_namespaced_custom_object(
                group=POOL_GROUP,
                version=POOL_VERSION,
                namespace=namespace,
                plural=POOL_PLURAL,
                label_selector=f"{LABEL_CLUSTER_NAME}={cluster_name}",
            )
        except Exception:
            log.error("failed_to_list_pools", namespace=namespace, cluster=cluster_name)
            raise

        pools: list[ManagedMachinePool] = []
        for item in response.get("items", []):
            try:
                pools.append(ManagedMachinePool.model_validate(item))
            except ValidationError:
                log.warning(
                    "pool_parse_failed",
                    namespace=namespace,
                    pool=item.get("metadata", {}).get("name"),
                )
        return pools


class StaticPoolLister:
    """A fixed set of pools, queried the same way as the live API."""

    def __init__(self, pools: Iterable[ManagedMachinePool]) -> None:
        self._pools = tuple(pools)

    def list_pools(self, namespace: str, cluster_name: str) -> list[ManagedMachinePool]:
        return [p for p in self._pools if p.metadata.namespace == namespace and p.cluster_name == cluster_name]
