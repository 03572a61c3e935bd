"""Shared helpers for reading and writing machine pool manifests."""

from __future__ import annotations

from typing import Any

import yaml

from nodepool_admission.models import POOL_KIND, ManagedMachinePool


def parse_pool_manifest(text: str) -> ManagedMachinePool:
    """Parse a YAML or JSON AzureManagedMachinePool manifest.

    Raises:
        ValueError: If the text is not a mapping, names another kind, or does
            not fit the pool schema (pydantic's ValidationError is a ValueError).
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        msg = f"Manifest is not valid YAML: {e}"
        raise ValueError(msg) from e

    if not isinstance(raw, dict):
        msg = f"Manifest must be a mapping, got {type(raw).__name__}."
        raise ValueError(msg)

    kind = raw.get("kind", POOL_KIND)
    if kind != POOL_KIND:
        msg = f"Unsupported kind {kind!r}. Only {POOL_KIND} manifests are admitted."
        raise ValueError(msg)

    return ManagedMachinePool.model_validate(raw)


def dump_pool_manifest(pool: ManagedMachinePool) -> dict[str, Any]:
    """Serialise a pool back to its camelCase manifest shape, omitting absent fields."""
    return pool.model_dump(mode="json", by_alias=True, exclude_none=True)
