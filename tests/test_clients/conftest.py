"""Client-specific test fixtures — raw CustomObjects API responses."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_custom_objects_api() -> MagicMock:
    """Factory for a mock Kubernetes CustomObjectsApi client."""
    return MagicMock()


@pytest.fixture
def pool_list_response(manifest_factory: Any) -> dict[str, Any]:
    """A list response holding two pools of one cluster, as returned by the API server."""
    system_pool = manifest_factory(name="pool0", mode="System")
    user_pool = manifest_factory(name="pool1", mode="User", nodeTaints=["key1=value1:NoSchedule"])
    user_pool["metadata"]["resourceVersion"] = "12345"
    user_pool["status"] = {"ready": True, "replicas": 3}
    return {
        "apiVersion": "infrastructure.cluster.x-k8s.io/v1beta1",
        "kind": "AzureManagedMachinePoolList",
        "items": [system_pool, user_pool],
    }
