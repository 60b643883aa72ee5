from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

import yaml

from ..errors import SchemaError
from ..observability import obs
from ..schema import ParameterSchema, parse_parameters


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """One externally supplied tool definition, not yet resolved against code."""

    name: str
    handler_identity: str
    method_name: str
    description: str = ""
    parameters: list[ParameterSchema] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CatalogEntry":
        if not isinstance(raw, Mapping):
            raise SchemaError("catalog entry must be a mapping")
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise SchemaError("catalog entry needs a non-empty 'name'")
        handler = raw.get("handler", raw.get("handler_identity"))
        if not isinstance(handler, str) or not handler.strip():
            raise SchemaError(f"catalog entry {name!r} needs a 'handler'")
        method = raw.get("method", raw.get("method_name")) or name
        if not isinstance(method, str):
            raise SchemaError(f"catalog entry {name!r} has a non-string 'method'")
        params_raw = raw.get("parameters", raw.get("inputSchema"))
        return cls(
            name=name,
            handler_identity=handler.strip(),
            method_name=method,
            description=str(raw.get("description") or ""),
            parameters=parse_parameters(params_raw),
        )


class CatalogProvider(Protocol):
    def list_tools(self) -> list[CatalogEntry]: ...


class StaticCatalogProvider:
    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self._entries = list(entries)

    def list_tools(self) -> list[CatalogEntry]:
        return list(self._entries)


class YamlCatalogProvider:
    """Tool catalog read from a YAML file with a top-level `tools:` list.

    The file is parsed on first use and cached. Malformed entries are logged
    and left out; they never hide the well-formed ones.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._cache: list[CatalogEntry] | None = None

    def list_tools(self) -> list[CatalogEntry]:
        if self._cache is None:
            self._cache = self._load()
        return list(self._cache)

    def _load(self) -> list[CatalogEntry]:
        if not self.path.exists():
            raise FileNotFoundError(f"catalog file not found: {self.path}")
        with self.path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise SchemaError(f"catalog root must be a mapping: {self.path}")
        items = raw.get("tools") or []
        if not isinstance(items, list):
            raise SchemaError(f"catalog 'tools' must be a list: {self.path}")

        entries: list[CatalogEntry] = []
        for i, item in enumerate(items):
            try:
                entries.append(CatalogEntry.from_dict(item))
            except SchemaError as e:
                name = item.get("name") if isinstance(item, Mapping) else None
                logger.warning("skipping catalog entry #%d (%s) in %s: %s", i, name, self.path, e.message)
                obs.event("warn.catalog_skipped", {"index": i, "name": name, "reason": e.message})
        return entries


def resolve_handler_identity(identity: str) -> Any:
    """Import the object named by `identity`.

    Accepted forms: `package.module:Qual.Name` and `package.module.QualName`.
    For the dotted form the longest importable module prefix wins.
    """
    if not isinstance(identity, str) or not identity.strip():
        raise ValueError("handler identity must be a non-empty string")
    identity = identity.strip()

    if ":" in identity:
        module_name, _, qualname = identity.partition(":")
        target: Any = importlib.import_module(module_name)
        for part in filter(None, qualname.split(".")):
            target = getattr(target, part)
        return target

    parts = identity.split(".")
    for cut in range(len(parts), 0, -1):
        module_name = ".".join(parts[:cut])
        try:
            target = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only swallow "this prefix is not a module", not missing imports inside it.
            if e.name is not None and not module_name.startswith(e.name):
                raise
            continue
        for part in parts[cut:]:
            target = getattr(target, part)
        return target
    raise ModuleNotFoundError(f"no importable module in {identity!r}", name=parts[0])
