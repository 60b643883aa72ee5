from __future__ import annotations

import json
from typing import Any

from ..errors import InternalError
from ..jsonrpc.codec import to_jsonable


OUTPUT_FORMATS = ("raw", "content")


def build_result(value: Any, *, output_format: str = "raw") -> Any:
    """Shape a tool's adapted return value into the `result` member.

    - raw: the value itself (JSON-encodable form).
    - content: MCP content blocks. Strings go out verbatim, other values as
      JSON text; a value that already looks like `{"content": [...]}` is
      validated and passed through.
    """
    if output_format == "raw":
        return to_jsonable(value)
    if output_format != "content":
        raise InternalError(f"unknown output format {output_format!r}")

    if isinstance(value, dict) and "content" in value:
        result = to_jsonable(value)
        _validate_content_result(result)
        return result

    if isinstance(value, str):
        text = value
    else:
        text = json.dumps(to_jsonable(value), ensure_ascii=False)
    return {"content": [{"type": "text", "text": text}]}


def _validate_content_result(result: dict[str, Any]) -> None:
    content = result.get("content")
    if not isinstance(content, list) or not content:
        raise InternalError("tool result.content must be a non-empty array")
    for i, item in enumerate(content):
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            raise InternalError(f"tool result.content[{i}] must be an object with a string 'type'")
        if item["type"] == "text" and not isinstance(item.get("text"), str):
            raise InternalError(f"tool result.content[{i}] is a text item without 'text'")
    sc = result.get("structuredContent")
    if sc is not None and not isinstance(sc, dict):
        raise InternalError("tool result.structuredContent must be an object")
