from __future__ import annotations

import threading
from pathlib import Path

import pytest

from mcp_invoke.observability.sinks import MemorySink
from mcp_invoke.registry import (
    CatalogEntry,
    MethodHandle,
    StaticCatalogProvider,
    ToolDescriptor,
    ToolRegistry,
    YamlCatalogProvider,
    resolve_handler_identity,
)
from mcp_invoke.schema import ParameterSchema
from mcp_invoke.testing.sample_tools import SampleToolService


SAMPLE = "mcp_invoke.testing.sample_tools:SampleToolService"


def _descriptor(name: str, fn=None) -> ToolDescriptor:
    fn = fn or (lambda: name)
    return ToolDescriptor(name=name, method=MethodHandle.from_callable(fn, name=name))


def test_register_overwrites_and_lookup_returns_latest() -> None:
    reg = ToolRegistry()
    first = _descriptor("tool")
    second = _descriptor("tool")
    reg.register(first)
    reg.register(second)
    assert reg.lookup("tool") is second
    assert len(reg) == 1


def test_register_rejects_none_and_blank_names() -> None:
    reg = ToolRegistry()
    with pytest.raises(TypeError):
        reg.register(None)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        reg.register(_descriptor("   "))


def test_lookup_missing_returns_none() -> None:
    reg = ToolRegistry()
    assert reg.lookup("nope") is None
    assert "nope" not in reg


def test_method_handle_from_owner_classifies_methods() -> None:
    add = MethodHandle.from_owner(SampleToolService, "add")
    assert not add.is_static
    assert add.owner is SampleToolService
    assert [p.name for p in add.parameters] == ["a", "b"]

    version = MethodHandle.from_owner(SampleToolService, "get_version")
    assert version.is_static
    assert version.parameters == ()

    timer = MethodHandle.from_owner(SampleToolService, "get_server_time")
    assert timer.is_async
    assert [p.name for p in timer.parameters] == ["include_milliseconds"]
    assert timer.parameters[0].default is False

    with pytest.raises(AttributeError):
        MethodHandle.from_owner(SampleToolService, "missing")


def test_method_handle_bind_to_instance() -> None:
    add = MethodHandle.from_owner(SampleToolService, "add")
    bound = add.bind_to(SampleToolService())
    assert bound(2, 3) == 5
    with pytest.raises(TypeError):
        add.bind_to(None)


def test_register_function_derives_schema() -> None:
    def scale(value: float, factor: int = 2) -> float:
        """Multiply value by factor."""
        return value * factor

    reg = ToolRegistry()
    desc = reg.register_function(scale)
    assert desc.name == "scale"
    assert desc.description == "Multiply value by factor."
    assert desc.parameters["value"].required
    assert desc.parameters["factor"].default == 2
    assert reg.list_specs()[0]["inputSchema"]["required"] == ["value"]


def test_resolve_handler_identity_forms() -> None:
    assert resolve_handler_identity(SAMPLE) is SampleToolService
    assert resolve_handler_identity("mcp_invoke.testing.sample_tools.SampleToolService") is SampleToolService
    with pytest.raises(ImportError):
        resolve_handler_identity("no_such_package_xyz.Thing")


def test_bulk_import_skips_bad_entries_and_keeps_going(memory_sink: MemorySink) -> None:
    from mcp_invoke.observability import obs

    entries = [
        CatalogEntry(name="Sample.Add", handler_identity=SAMPLE, method_name="add"),
        CatalogEntry(name="Broken.Module", handler_identity="no_such_package_xyz:Svc", method_name="run"),
        CatalogEntry(name="Broken.Method", handler_identity=SAMPLE, method_name="does_not_exist"),
        CatalogEntry(name="Sample.Greet", handler_identity=SAMPLE, method_name="greet"),
    ]
    reg = ToolRegistry()
    with obs.trace_request("test"):
        report = reg.bulk_import(entries)

    assert report.imported == ["Sample.Add", "Sample.Greet"]
    assert [name for name, _ in report.skipped] == ["Broken.Module", "Broken.Method"]
    assert reg.names() == ["Sample.Add", "Sample.Greet"]
    assert reg.lookup("Sample.Add").handler is SampleToolService

    kinds = [e.kind for e in memory_sink.traces[0].events]
    assert kinds.count("warn.catalog_skipped") == 2
    assert "catalog.imported" in kinds


def test_import_from_provider_failure_yields_empty_report(tmp_path: Path) -> None:
    reg = ToolRegistry()
    report = reg.import_from(YamlCatalogProvider(tmp_path / "missing.yaml"))
    assert report.imported == []
    assert len(report.skipped) == 1
    assert len(reg) == 0


def test_yaml_catalog_provider_parses_and_caches(tmp_path: Path) -> None:
    p = tmp_path / "catalog.yaml"
    p.write_text(
        f"""
tools:
  - name: Sample.Add
    description: add two ints
    handler: {SAMPLE}
    method: add
    parameters:
      - {{name: a, type: integer, required: true}}
      - {{name: b, type: integer, required: true}}
  - name: Bad.Entry
    handler: {SAMPLE}
    parameters:
      - {{name: a, type: decimal}}
""".strip()
        + "\n",
        encoding="utf-8",
    )
    provider = YamlCatalogProvider(p)
    entries = provider.list_tools()
    assert [e.name for e in entries] == ["Sample.Add"]
    assert entries[0].parameters[0] == ParameterSchema(name="a", type="integer", required=True)

    p.unlink()
    assert [e.name for e in provider.list_tools()] == ["Sample.Add"]


def test_list_specs_sorted_by_name() -> None:
    reg = ToolRegistry()
    reg.import_from(
        StaticCatalogProvider(
            [
                CatalogEntry(name="b.tool", handler_identity=SAMPLE, method_name="get_version"),
                CatalogEntry(name="a.tool", handler_identity=SAMPLE, method_name="get_version"),
            ]
        )
    )
    assert [s["name"] for s in reg.list_specs()] == ["a.tool", "b.tool"]
    assert reg.list_specs()[0]["inputSchema"] == {"type": "object", "properties": {}}


def test_concurrent_registration_and_lookup() -> None:
    reg = ToolRegistry()
    reg.register(_descriptor("shared"))
    errors: list[str] = []

    def writer(i: int) -> None:
        for _ in range(200):
            reg.register(_descriptor(f"tool-{i}"))
            reg.register(_descriptor("shared"))

    def reader() -> None:
        for _ in range(500):
            if reg.lookup("shared") is None:
                errors.append("shared vanished")

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(4)]
    threads += [threading.Thread(target=reader) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(reg) == 5


def test_bulk_import_survives_module_that_raises_on_import(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "exploding_tools_mod.py").write_text(
        'raise RuntimeError("boom at import")\n\nclass Svc:\n    def run(self):\n        return 1\n',
        encoding="utf-8",
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    reg = ToolRegistry()
    report = reg.bulk_import(
        [
            CatalogEntry(name="Bad.Run", handler_identity="exploding_tools_mod:Svc", method_name="run"),
            CatalogEntry(name="Sample.GetVersion", handler_identity=SAMPLE, method_name="get_version"),
        ]
    )

    assert report.imported == ["Sample.GetVersion"]
    assert report.skipped[0][0] == "Bad.Run"
    assert "RuntimeError" in report.skipped[0][1]
    assert "Sample.GetVersion" in reg


def test_names_while_registering_concurrently() -> None:
    reg = ToolRegistry()
    errors: list[BaseException] = []

    def writer(i: int) -> None:
        for n in range(300):
            reg.register(_descriptor(f"w{i}-{n}"))

    def reader() -> None:
        try:
            for _ in range(300):
                names = reg.names()
                assert names == sorted(names)
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(3)]
    threads += [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(reg) == 900
