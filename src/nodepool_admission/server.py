"""MCP server entry point and admission tool registration."""

from __future__ import annotations

import sys
import time

import structlog
from mcp.server.fastmcp import FastMCP

from nodepool_admission.config import LOG_LEVELS, load_admission_config, validate_admission_config
from nodepool_admission.tools.admission import (
    default_pool_handler,
    review_handler,
    validate_create_handler,
    validate_update_handler,
)

_config = load_admission_config()

# Configure structlog for JSON output to stderr
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVELS.get(_config.log_level, LOG_LEVELS["info"])),
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)

log = structlog.get_logger()

mcp = FastMCP("Node Pool Admission Server")


@mcp.tool()
async def default_node_pool(manifest: str) -> str:
    """Apply defaulting to an AzureManagedMachinePool manifest.

    Sets the agentpool-mode label from spec.mode and fills an empty spec.name
    with the resource name. Returns the defaulted manifest.

    Args:
        manifest: The pool manifest as YAML or JSON text.
    """
    start = time.monotonic()
    try:
        result = await default_pool_handler(manifest)
        log.info("tool_completed", tool="default_node_pool", pool=result.name, latency_ms=_elapsed_ms(start))
        return result.model_dump_json(indent=2)
    except Exception as e:
        log.error("tool_failed", tool="default_node_pool", error=str(e))
        raise RuntimeError(str(e)) from None


@mcp.tool()
async def validate_node_pool_create(manifest: str) -> str:
    """Default and validate a new AzureManagedMachinePool.

    Checks node taint syntax (key=value:NoSchedule|PreferNoSchedule|NoExecute),
    allowed unsafe sysctls, and that autoscaling sets both minCount and maxCount.
    Returns every violation found, not just the first.

    Args:
        manifest: The pool manifest as YAML or JSON text.
    """
    start = time.monotonic()
    try:
        result = await validate_create_handler(manifest)
        log.info(
            "tool_completed",
            tool="validate_node_pool_create",
            pool=result.name,
            allowed=result.allowed,
            latency_ms=_elapsed_ms(start),
        )
        return result.model_dump_json(indent=2)
    except Exception as e:
        log.error("tool_failed", tool="validate_node_pool_create", error=str(e))
        raise RuntimeError(str(e)) from None


@mcp.tool()
async def validate_node_pool_update(manifest: str, old_manifest: str) -> str:
    """Validate an update to an existing AzureManagedMachinePool.

    Re-checks field syntax and rejects changes to immutable fields: sku,
    osDiskSizeGB, osDiskType, enableFIPS, enableNodePublicIP, scaleSetPriority,
    maxPods and the set of nodeTaints. Demoting the last System pool of a
    cluster is rejected when sibling lookup is configured.

    Args:
        manifest: The updated pool manifest as YAML or JSON text.
        old_manifest: The currently admitted pool manifest.
    """
    start = time.monotonic()
    try:
        result = await validate_update_handler(manifest, old_manifest)
        log.info(
            "tool_completed",
            tool="validate_node_pool_update",
            pool=result.name,
            allowed=result.allowed,
            latency_ms=_elapsed_ms(start),
        )
        return result.model_dump_json(indent=2)
    except Exception as e:
        log.error("tool_failed", tool="validate_node_pool_update", error=str(e))
        raise RuntimeError(str(e)) from None


@mcp.tool()
async def review_node_pool_admission(operation: str, manifest: str, old_manifest: str | None = None) -> str:
    """Run the full admission flow for one node pool request.

    CREATE defaults then validates, UPDATE validates the transition against
    old_manifest, and DELETE is always allowed.

    Args:
        operation: 'CREATE', 'UPDATE' or 'DELETE'.
        manifest: The pool manifest as YAML or JSON text.
        old_manifest: The previously admitted manifest. Required for UPDATE.
    """
    start = time.monotonic()
    try:
        result = await review_handler(operation, manifest, old_manifest)
        log.info(
            "tool_completed",
            tool="review_node_pool_admission",
            operation=operation,
            pool=result.name,
            allowed=result.allowed,
            latency_ms=_elapsed_ms(start),
        )
        return result.model_dump_json(indent=2)
    except Exception as e:
        log.error("tool_failed", tool="review_node_pool_admission", operation=operation, error=str(e))
        raise RuntimeError(str(e)) from None


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


if __name__ == "__main__":
    validate_admission_config(_config)
    mcp.run(transport="stdio")
