from __future__ import annotations

import asyncio

from mcp_invoke.jsonrpc.codec import INVALID_PARAMS, METHOD_NOT_FOUND
from mcp_invoke.jsonrpc.dispatcher import Dispatcher, JsonRpcAppError
from mcp_invoke.jsonrpc.models import JsonRpcRequest


def _req(method: str, params: object = None, id: object = 1) -> JsonRpcRequest:
    return JsonRpcRequest(jsonrpc="2.0", method=method, params=params, id=id)


def test_dispatcher_method_not_found() -> None:
    d = Dispatcher()
    resp = asyncio.run(d.handle(_req("nope")))
    assert resp.error is not None
    assert resp.error.code == METHOD_NOT_FOUND
    assert "not found" in resp.error.message


def test_dispatcher_routes_and_returns_result() -> None:
    d = Dispatcher()

    def ping(req: JsonRpcRequest):
        return {"ok": True, "method": req.method}

    d.register("ping", ping)
    resp = asyncio.run(d.handle(_req("ping")))
    assert resp.error is None
    assert resp.result == {"ok": True, "method": "ping"}


def test_dispatcher_awaits_async_handlers() -> None:
    d = Dispatcher()

    async def slow(req: JsonRpcRequest):
        await asyncio.sleep(0)
        return req.params["x"] * 2

    d.register("slow", slow)
    resp = asyncio.run(d.handle(_req("slow", {"x": 21})))
    assert resp.result == 42


def test_dispatcher_fallback_receives_unregistered_methods() -> None:
    seen: list[str] = []

    def fallback(req: JsonRpcRequest):
        seen.append(req.method)
        return "handled"

    d = Dispatcher(fallback=fallback)
    resp = asyncio.run(d.handle(_req("Sample.Add")))
    assert resp.result == "handled"
    assert seen == ["Sample.Add"]


def test_dispatcher_exception_maps_to_internal_error() -> None:
    d = Dispatcher()

    def bad(req: JsonRpcRequest):
        raise RuntimeError("boom")

    d.register("bad", bad)
    resp = asyncio.run(d.handle(_req("bad")))
    assert resp.error is not None
    assert resp.error.code == -32603
    assert resp.error.data == {"exc_type": "RuntimeError"}


def test_dispatcher_app_error_uses_custom_code() -> None:
    d = Dispatcher()

    def bad_params(req: JsonRpcRequest):
        raise JsonRpcAppError(INVALID_PARAMS, "invalid params", {"x": 1})

    d.register("bad_params", bad_params)
    resp = asyncio.run(d.handle(_req("bad_params")))
    assert resp.error is not None
    assert resp.error.code == INVALID_PARAMS
    assert resp.error.message == "invalid params"
    assert resp.error.data == {"x": 1}
