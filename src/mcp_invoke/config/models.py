from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


def _as_path(v: Any, default: Path | None) -> Path | None:
    if v is None:
        return default
    if isinstance(v, Path):
        return v
    if isinstance(v, str):
        return Path(v) if v.strip() else default
    raise TypeError(f"expected path-like value, got {type(v).__name__}")


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, str) and v.strip().lower() in {"true", "false"}:
        return v.strip().lower() == "true"
    raise TypeError(f"expected bool-like value, got {type(v).__name__}")


def _as_str(v: Any, default: str, *, name: str) -> str:
    if v is None:
        return default
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        # YAML reads `version: 1.0` as a float.
        return str(v)
    if not isinstance(v, str):
        raise TypeError(f"{name} must be str, got {type(v).__name__}")
    return v


def _as_choice(v: Any, default: str, choices: tuple[str, ...], *, name: str) -> str:
    s = _as_str(v, default, name=name).strip().lower()
    if s not in choices:
        raise ValueError(f"{name} must be one of {choices}, got {s!r}")
    return s


def _check_mapping(raw: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    v = raw.get(key)
    if v is not None and not isinstance(v, Mapping):
        raise TypeError(f"{key} must be mapping, got {type(v).__name__}")
    return v


@dataclass
class ServerSettings:
    name: str = "mcp-invoke"
    version: str = "0.1.0"
    protocol_version: str = "2025-06-18"
    output_format: str = "raw"

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "ServerSettings":
        d = d or {}
        return cls(
            name=_as_str(d.get("name"), cls.name, name="server.name"),
            version=_as_str(d.get("version"), cls.version, name="server.version"),
            protocol_version=_as_str(d.get("protocol_version"), cls.protocol_version, name="server.protocol_version"),
            output_format=_as_choice(d.get("output_format"), cls.output_format, ("raw", "content"), name="server.output_format"),
        )


@dataclass
class BindingSettings:
    case_insensitive: bool = True
    nested_required: str = "strict"
    infrastructure_types: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "BindingSettings":
        d = d or {}
        infra = d.get("infrastructure_types") or []
        if not isinstance(infra, list) or not all(isinstance(x, str) and x for x in infra):
            raise TypeError("binding.infrastructure_types must be a list of dotted type names")
        return cls(
            case_insensitive=_as_bool(d.get("case_insensitive"), True),
            nested_required=_as_choice(
                d.get("nested_required"), "strict", ("strict", "lenient"), name="binding.nested_required"
            ),
            infrastructure_types=list(infra),
        )


@dataclass
class CatalogSettings:
    path: Path | None = None

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "CatalogSettings":
        d = d or {}
        return cls(path=_as_path(d.get("path"), None))


@dataclass
class PathsSettings:
    logs_dir: Path = Path("logs")

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "PathsSettings":
        d = d or {}
        return cls(logs_dir=_as_path(d.get("logs_dir"), cls.logs_dir))


@dataclass
class ObservabilitySettings:
    traces_enabled: bool = True

    @classmethod
    def from_dict(cls, d: Mapping[str, Any] | None) -> "ObservabilitySettings":
        d = d or {}
        return cls(traces_enabled=_as_bool(d.get("traces_enabled"), True))


@dataclass
class Settings:
    server: ServerSettings = field(default_factory=ServerSettings)
    binding: BindingSettings = field(default_factory=BindingSettings)
    catalog: CatalogSettings = field(default_factory=CatalogSettings)
    paths: PathsSettings = field(default_factory=PathsSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)

    # Keep the raw mapping for debugging; must be JSON-serializable.
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "Settings":
        raw = dict(raw or {})
        return cls(
            server=ServerSettings.from_dict(_check_mapping(raw, "server")),
            binding=BindingSettings.from_dict(_check_mapping(raw, "binding")),
            catalog=CatalogSettings.from_dict(_check_mapping(raw, "catalog")),
            paths=PathsSettings.from_dict(_check_mapping(raw, "paths")),
            observability=ObservabilitySettings.from_dict(_check_mapping(raw, "observability")),
            raw=raw,
        )
