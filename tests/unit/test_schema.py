from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import pytest
from pydantic import BaseModel

from mcp_invoke.errors import SchemaError
from mcp_invoke.mcp.session import CallSession
from mcp_invoke.schema import (
    MISSING,
    ParameterSchema,
    build_input_schema,
    matches_type_tag,
    parse_parameters,
    schema_from_signature,
)


class TestStatus(Enum):
    __test__ = False

    Active = 0
    Inactive = 1
    Pending = 2


@dataclass
class Address:
    street: str
    zip_code: str = "00000"


@dataclass
class Customer:
    name: str
    address: Address
    tags: list[str] = field(default_factory=list)


class Filter(BaseModel):
    term: str
    limit: int = 10


def test_from_dict_parses_nested_object() -> None:
    s = ParameterSchema.from_dict(
        "customer",
        {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "age": {"type": "integer", "default": 18},
            },
            "required": ["name"],
        },
        required=True,
    )
    assert s.required
    assert s.type == "object"
    assert s.required_fields == ["name"]
    assert s.properties is not None
    assert s.properties["age"].default == 18
    assert not s.properties["age"].required


def test_from_dict_infers_type_and_keeps_annotations() -> None:
    s = ParameterSchema.from_dict("status", {"enum": ["Active", "Inactive"], "source": "query"})
    assert s.type == "string"
    assert s.is_enum
    assert s.annotations == {"source": "query"}
    assert s.to_json_schema()["x-annotations"] == {"source": "query"}


def test_from_dict_rejects_unknown_type_tag() -> None:
    with pytest.raises(SchemaError):
        ParameterSchema.from_dict("x", {"type": "decimal"})


def test_from_dict_without_any_type_information_fails() -> None:
    with pytest.raises(SchemaError):
        ParameterSchema.from_dict("x", {"description": "mystery"})


def test_default_sentinel_distinguishes_declared_none() -> None:
    assert not ParameterSchema(name="a", type="string").has_default
    s = ParameterSchema.from_dict("a", {"type": "string", "default": None})
    assert s.has_default
    assert s.default is None
    assert ParameterSchema(name="b", type="string").default is MISSING


def test_parse_parameters_accepts_list_and_input_schema_forms() -> None:
    from_list = parse_parameters(
        [
            {"name": "orgId", "type": "integer", "required": True},
            {"name": "pageSize", "type": "integer", "default": 10},
        ]
    )
    from_schema = parse_parameters(
        {
            "type": "object",
            "properties": {"orgId": {"type": "integer"}, "pageSize": {"type": "integer", "default": 10}},
            "required": ["orgId"],
        }
    )
    for params in (from_list, from_schema):
        by_name = {p.name: p for p in params}
        assert by_name["orgId"].required
        assert not by_name["pageSize"].required
        assert by_name["pageSize"].default == 10


def test_parse_parameters_rejects_unnamed_items() -> None:
    with pytest.raises(SchemaError):
        parse_parameters([{"type": "integer"}])


def test_build_input_schema_lists_required_names() -> None:
    out = build_input_schema(
        [
            ParameterSchema(name="a", type="integer", required=True),
            ParameterSchema(name="b", type="integer", default=1),
        ]
    )
    assert out == {
        "type": "object",
        "properties": {"a": {"type": "integer"}, "b": {"type": "integer", "default": 1}},
        "required": ["a"],
    }


@pytest.mark.parametrize(
    ("value", "tag", "ok"),
    [
        ("x", "string", True),
        (1, "string", False),
        (3, "integer", True),
        (3.0, "integer", True),
        (3.5, "integer", False),
        (True, "integer", False),
        (2.5, "number", True),
        (False, "boolean", True),
        ({}, "object", True),
        ([], "array", True),
        ("[]", "array", False),
    ],
)
def test_matches_type_tag(value: object, tag: str, ok: bool) -> None:
    assert matches_type_tag(value, tag) is ok


def test_schema_from_signature_maps_python_types() -> None:
    def find(
        customer: Customer,
        status: TestStatus,
        flt: Filter,
        ids: list[int],
        session: CallSession,
        verbose: bool = False,
        note: str | None = None,
    ) -> None:
        return None

    params = {p.name: p for p in schema_from_signature(find, skip_types=[CallSession])}
    assert "session" not in params

    assert params["customer"].type == "object"
    assert params["customer"].required
    address = params["customer"].properties["address"]
    assert address.type == "object"
    assert address.properties["street"].required
    assert not address.properties["zip_code"].required
    assert address.properties["zip_code"].default == "00000"

    assert params["status"].type == "string"
    assert params["status"].enum == ["Active", "Inactive", "Pending"]

    assert params["flt"].properties["term"].required
    assert params["flt"].properties["limit"].default == 10

    assert params["ids"].type == "array"
    assert params["ids"].items.type == "integer"

    assert params["verbose"].type == "boolean"
    assert not params["verbose"].required
    assert params["verbose"].default is False
    assert params["note"].type == "string"
    assert params["note"].default is None
