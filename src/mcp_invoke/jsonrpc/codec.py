from __future__ import annotations

import json
import re
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from pathlib import PurePath
from typing import Any
from uuid import UUID

from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse


# JSON-RPC 2.0 standard error codes.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
# Implementation-defined server error range: -32000..-32099.
SERVER_ERROR = -32000

_ID_PATTERN = re.compile(r'"id"\s*:\s*("(?:[^"\\]|\\.)*"|-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)')


class JsonRpcCodecError(ValueError):
    def __init__(self, code: int, message: str, *, req_id: Any | None = None, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.req_id = req_id
        self.data = data


def _valid_id(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, str))


def peek_request_id(raw: str | bytes) -> Any | None:
    """Recover the request id without requiring a well-formed envelope.

    A full parse is tried first; a truncated or otherwise broken body falls
    back to scanning the raw text, so parse errors can still echo the id.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        obj = json.loads(raw)
    except ValueError:
        obj = None
    else:
        if isinstance(obj, dict):
            value = obj.get("id")
            return value if _valid_id(value) else None
        return None

    m = _ID_PATTERN.search(raw)
    if m is None:
        return None
    try:
        value = json.loads(m.group(1))
    except ValueError:
        return None
    return value if _valid_id(value) else None


def decode_request(line: str | bytes) -> JsonRpcRequest:
    """
    Decode one JSON-RPC request from a JSON document (one line on stdio).
    """
    try:
        raw = json.loads(line)
    except Exception as e:
        raise JsonRpcCodecError(PARSE_ERROR, f"Parse error: {e}", req_id=peek_request_id(line)) from e

    if not isinstance(raw, dict):
        raise JsonRpcCodecError(PARSE_ERROR, "Parse error: request root must be an object")

    req_id = raw.get("id") if "id" in raw else None
    if req_id is not None and not _valid_id(req_id):
        req_id = None

    method = raw.get("method")
    if not isinstance(method, str) or not method:
        raise JsonRpcCodecError(INVALID_REQUEST, "Invalid request: method must be non-empty string", req_id=req_id)

    jsonrpc = raw.get("jsonrpc")
    params = raw.get("params") if "params" in raw else None
    return JsonRpcRequest(jsonrpc=jsonrpc if isinstance(jsonrpc, str) else None, method=method, params=params, id=req_id)


def to_jsonable(obj: Any) -> Any:
    """Convert handler results into plain JSON-compatible values."""
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, Enum):
        return obj.name
    if isinstance(obj, dict):
        return {str(to_jsonable(k)): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in obj]
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    model_dump = getattr(obj, "model_dump", None)
    if callable(model_dump):
        return to_jsonable(model_dump())
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, (Decimal, UUID, PurePath)):
        return str(obj)
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    return str(obj)


def encode_response(resp: JsonRpcResponse) -> str:
    return json.dumps(to_jsonable(resp.to_dict()), ensure_ascii=False, separators=(",", ":"))


def encode_error(req_id: Any | None, code: int, message: str, data: Any | None = None) -> str:
    resp = JsonRpcResponse(id=req_id, error=JsonRpcError(code=code, message=message, data=data))
    return encode_response(resp)
