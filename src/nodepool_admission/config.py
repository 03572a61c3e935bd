"""Admission server configuration: YAML file with environment variable overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_KNOWN_KEYS = ("kubeconfig_context", "sibling_lookup", "log_level")


@dataclass(frozen=True)
class AdmissionConfig:
    """Settings for the admission server and its sibling pool lookups."""

    kubeconfig_context: str | None = None
    sibling_lookup: bool = True
    log_level: str = "info"

    @property
    def lookup_enabled(self) -> bool:
        """True when sibling pools can be listed from a cluster."""
        return self.sibling_lookup and bool(self.kubeconfig_context)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _load_config_file(path: Path) -> dict[str, Any]:
    """Parse a YAML admission configuration file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        The recognised settings; an absent file yields an empty dict.

    Raises:
        ValueError: If the file content is malformed or has unknown keys.
    """
    if not path.exists():
        return {}

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        msg = f"Admission config file {path} must be a mapping, got {type(raw).__name__}."
        raise ValueError(msg)

    unknown = sorted(set(raw) - set(_KNOWN_KEYS))
    if unknown:
        msg = f"Admission config file {path} has unknown keys: {', '.join(unknown)}."
        raise ValueError(msg)

    settings: dict[str, Any] = {}
    if raw.get("kubeconfig_context") is not None:
        settings["kubeconfig_context"] = str(raw["kubeconfig_context"])
    if "sibling_lookup" in raw:
        if not isinstance(raw["sibling_lookup"], bool):
            msg = f"Admission config file {path}: sibling_lookup must be true or false."
            raise ValueError(msg)
        settings["sibling_lookup"] = raw["sibling_lookup"]
    if "log_level" in raw:
        settings["log_level"] = str(raw["log_level"]).lower()
    return settings


def load_admission_config() -> AdmissionConfig:
    """Load configuration from YAML, then apply environment variable overrides.

    Reads the file path from ``NODEPOOL_ADMISSION_CONFIG``, defaulting to
    ``admission.yaml`` in the current working directory. ``NODEPOOL_KUBE_CONTEXT``,
    ``NODEPOOL_SIBLING_LOOKUP`` and ``NODEPOOL_LOG_LEVEL`` take precedence over
    the file.
    """
    path = Path(os.environ.get("NODEPOOL_ADMISSION_CONFIG", "admission.yaml"))
    settings = _load_config_file(path)

    if "NODEPOOL_KUBE_CONTEXT" in os.environ:
        settings["kubeconfig_context"] = os.environ["NODEPOOL_KUBE_CONTEXT"] or None
    if "NODEPOOL_SIBLING_LOOKUP" in os.environ:
        settings["sibling_lookup"] = _parse_bool(os.environ["NODEPOOL_SIBLING_LOOKUP"])
    if "NODEPOOL_LOG_LEVEL" in os.environ:
        settings["log_level"] = os.environ["NODEPOOL_LOG_LEVEL"].lower()

    return AdmissionConfig(**settings)


def validate_admission_config(config: AdmissionConfig) -> None:
    """Validate configuration at startup.

    Raises RuntimeError on an unknown log level or an empty kubeconfig context.
    """
    errors: list[str] = []
    if config.log_level not in LOG_LEVELS:
        valid = ", ".join(LOG_LEVELS)
        errors.append(f"log_level {config.log_level!r} is not one of: {valid}")
    if config.kubeconfig_context is not None and not config.kubeconfig_context.strip():
        errors.append("kubeconfig_context is blank")

    if errors:
        detail = "; ".join(errors)
        msg = f"Admission configuration errors: {detail}."
        raise RuntimeError(msg)
