from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from ..errors import SchemaError
from ..observability import obs
from ..schema import ParameterSchema, schema_from_signature
from .catalog import CatalogEntry, CatalogProvider, resolve_handler_identity
from .descriptor import MethodHandle, ToolDescriptor


logger = logging.getLogger(__name__)


@dataclass
class ImportReport:
    imported: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.skipped


class ToolRegistry:
    """Name -> ToolDescriptor map shared by all in-flight requests.

    Writes replace whole descriptors under a short lock; lookups are a single
    dict read and never block on a writer.
    """

    def __init__(self, *, skip_types: Iterable[Any] = ()) -> None:
        self._tools: dict[str, ToolDescriptor] = {}
        self._lock = threading.Lock()
        self._skip_types = tuple(skip_types)

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor is None:
            raise TypeError("descriptor must not be None")
        name = descriptor.name
        if not isinstance(name, str) or not name.strip():
            raise ValueError("tool name must be non-empty string")
        with self._lock:
            replaced = name in self._tools
            self._tools[name] = descriptor
        if replaced:
            logger.info("tool %r re-registered", name)

    def register_function(
        self,
        fn: Callable[..., Any],
        *,
        name: str | None = None,
        description: str | None = None,
        parameters: Iterable[ParameterSchema] | None = None,
    ) -> ToolDescriptor:
        method = MethodHandle.from_callable(fn, name=name)
        if parameters is None:
            params = schema_from_signature(fn, skip_types=self._skip_types)
        else:
            params = list(parameters)
        desc = ToolDescriptor(
            name=name or method.name,
            method=method,
            handler=None,
            parameters={p.name: p for p in params},
            description=description if description is not None else (inspect.getdoc(fn) or "").strip(),
        )
        self.register(desc)
        return desc

    def lookup(self, name: str) -> ToolDescriptor | None:
        return self._tools.get(name)

    def bulk_import(self, entries: Iterable[CatalogEntry]) -> ImportReport:
        """Resolve and register each catalog entry independently.

        A failing entry is logged and skipped; it never stops the rest.
        """
        report = ImportReport()
        for entry in entries:
            try:
                desc = self._descriptor_for(entry)
                self.register(desc)
            except Exception as e:
                name = getattr(entry, "name", None) or "<unnamed>"
                reason = f"{type(e).__name__}: {e}"
                logger.warning("skipping catalog tool %r: %s", name, reason)
                obs.event("warn.catalog_skipped", {"name": name, "reason": reason})
                report.skipped.append((name, reason))
                continue
            report.imported.append(desc.name)
        obs.event("catalog.imported", {"imported": len(report.imported), "skipped": len(report.skipped)})
        return report

    def import_from(self, provider: CatalogProvider) -> ImportReport:
        try:
            entries = provider.list_tools()
        except (OSError, SchemaError, ValueError) as e:
            logger.warning("catalog provider %s failed: %s", type(provider).__name__, e)
            return ImportReport(skipped=[("<catalog>", f"{type(e).__name__}: {e}")])
        return self.bulk_import(entries)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._tools)

    def snapshot(self) -> list[ToolDescriptor]:
        with self._lock:
            return list(self._tools.values())

    def list_specs(self) -> list[dict[str, Any]]:
        out = [d.to_spec() for d in self.snapshot()]
        out.sort(key=lambda x: x["name"])
        return out

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    @staticmethod
    def _descriptor_for(entry: CatalogEntry) -> ToolDescriptor:
        if not isinstance(entry, CatalogEntry):
            raise TypeError(f"expected CatalogEntry, got {type(entry).__name__}")
        target = resolve_handler_identity(entry.handler_identity)
        method = MethodHandle.from_owner(target, entry.method_name)
        return ToolDescriptor(
            name=entry.name,
            method=method,
            handler=target if isinstance(target, type) else None,
            parameters={p.name: p for p in entry.parameters},
            description=entry.description,
        )
