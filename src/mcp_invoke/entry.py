from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .binding import BinderOptions, ParameterBinder
from .config import Settings, load_settings, settings_path_from_env
from .invocation import ConstructorInjectionStrategy, DynamicInvoker, ServiceContainer
from .jsonrpc import JsonRpcRequest, StdioTransport
from .mcp.protocol import McpProtocol
from .observability import obs
from .observability.sinks.jsonl import JsonlSink
from .registry import StaticCatalogProvider, ToolRegistry, YamlCatalogProvider
from .testing.sample_tools import sample_catalog_entries


logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    settings: Settings
    registry: ToolRegistry
    container: ServiceContainer
    protocol: McpProtocol


def build_observability(settings: Settings) -> JsonlSink | None:
    if not settings.observability.traces_enabled:
        obs.set_sink(None)
        return None
    sink = JsonlSink(settings.paths.logs_dir)
    obs.set_sink(sink)
    return sink


def build_runtime(settings: Settings, *, container: ServiceContainer | None = None) -> Runtime:
    """Wire registry, binder, invoker and protocol from settings."""
    options = BinderOptions(
        case_insensitive=settings.binding.case_insensitive,
        nested_required=settings.binding.nested_required,
    ).with_infrastructure(settings.binding.infrastructure_types)

    registry = ToolRegistry(skip_types=options.infrastructure_types)
    if settings.catalog.path is not None:
        provider: Any = YamlCatalogProvider(settings.catalog.path)
    else:
        provider = StaticCatalogProvider(sample_catalog_entries())
    report = registry.import_from(provider)
    logger.info("imported %d tools (%d skipped)", len(report.imported), len(report.skipped))

    container = container or ServiceContainer()
    invoker = DynamicInvoker(container, strategies=[ConstructorInjectionStrategy()])
    protocol = McpProtocol(
        registry=registry,
        binder=ParameterBinder(options),
        invoker=invoker,
        output_format=settings.server.output_format,
    )
    register_session_methods(protocol, settings)
    return Runtime(settings=settings, registry=registry, container=container, protocol=protocol)


def register_session_methods(protocol: McpProtocol, settings: Settings) -> None:
    """Handshake and housekeeping methods a stdio client sends around tool calls."""

    def initialize(req: JsonRpcRequest) -> dict[str, Any]:
        return {
            "protocolVersion": settings.server.protocol_version,
            "serverInfo": {"name": settings.server.name, "version": settings.server.version},
            "capabilities": {"tools": {"listChanged": False}},
        }

    def ping(req: JsonRpcRequest) -> dict[str, Any]:
        return {}

    def notification(req: JsonRpcRequest) -> None:
        return None

    protocol.register_method("initialize", initialize)
    protocol.register_method("ping", ping)
    protocol.register_method("notifications/initialized", notification)
    protocol.register_method("notifications/cancelled", notification)


def serve_stdio(settings_path: str | Path) -> None:
    settings = load_settings(settings_path)
    build_observability(settings)
    runtime = build_runtime(settings)
    StdioTransport().serve(runtime.protocol.process_raw)


def main() -> None:
    # stdout carries protocol messages; diagnostics go to stderr.
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("MCP_INVOKE_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    serve_stdio(settings_path_from_env())


if __name__ == "__main__":  # pragma: no cover
    main()
