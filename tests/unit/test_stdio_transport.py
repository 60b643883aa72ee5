from __future__ import annotations

import asyncio
import io
import json

from mcp_invoke.jsonrpc.stdio_transport import StdioTransport


def _run(transport: StdioTransport, handler) -> list[dict]:
    asyncio.run(transport.serve_async(handler))
    return [json.loads(line) for line in transport.stdout.getvalue().splitlines()]


def test_stdio_transport_writes_one_line_per_response() -> None:
    stdin = io.StringIO('{"id":1}\n\n{"id":2}\n{"notify":true}\n')
    transport = StdioTransport(stdin=stdin, stdout=io.StringIO())

    async def handler(line: str) -> str | None:
        obj = json.loads(line)
        if "id" not in obj:
            return None
        return json.dumps({"jsonrpc": "2.0", "id": obj["id"], "result": "ok"})

    out = _run(transport, handler)
    assert sorted(o["id"] for o in out) == [1, 2]


def test_slow_request_does_not_block_the_next_one() -> None:
    stdin = io.StringIO('{"id":"slow"}\n{"id":"fast"}\n')
    transport = StdioTransport(stdin=stdin, stdout=io.StringIO())

    async def handler(line: str) -> str:
        req_id = json.loads(line)["id"]
        await asyncio.sleep(0.2 if req_id == "slow" else 0)
        return json.dumps({"jsonrpc": "2.0", "id": req_id, "result": req_id})

    out = _run(transport, handler)
    assert [o["id"] for o in out] == ["fast", "slow"]


def test_handler_crash_becomes_internal_error_with_id() -> None:
    stdin = io.StringIO('{"jsonrpc":"2.0","id":5,"method":"x"}\n')
    transport = StdioTransport(stdin=stdin, stdout=io.StringIO())

    async def handler(line: str) -> str:
        raise RuntimeError("kaboom")

    [out] = _run(transport, handler)
    assert out["id"] == 5
    assert out["error"]["code"] == -32603
    assert out["error"]["data"] == "kaboom"
