"""Kubernetes client construction for sibling pool lookups."""

from __future__ import annotations

from kubernetes import client as k8s_client
from kubernetes.config import new_client_from_config


def load_custom_objects_api(context: str) -> k8s_client.CustomObjectsApi:
    """Return a CustomObjectsApi bound to its own ApiClient for one kubeconfig context.

    The process-wide kubernetes configuration is never loaded, so listers for
    different contexts can run side by side.
    """
    api_client = new_client_from_config(context=context)
    return k8s_client.CustomObjectsApi(api_client)
