from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..binding import ParameterBinder
from ..errors import (
    BindingError,
    InvalidParamsError,
    ToolNotFoundError,
    attach_trace_id,
    map_exception_to_jsonrpc,
)
from ..invocation import DynamicInvoker
from ..jsonrpc.codec import JsonRpcCodecError, decode_request, encode_response, peek_request_id
from ..jsonrpc.dispatcher import Dispatcher, Handler
from ..jsonrpc.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from ..observability import obs
from ..observability.trace import TraceContext
from ..registry import ToolRegistry
from .envelope import OUTPUT_FORMATS, build_result
from .session import CallSession


logger = logging.getLogger(__name__)

TOOLS_LIST = "tools/list"
TOOLS_CALL = "tools/call"


def _map_error(exc: Exception) -> JsonRpcError:
    return attach_trace_id(map_exception_to_jsonrpc(exc), obs.current_trace_id())


@dataclass
class McpProtocol:
    """Tool dispatch over JSON-RPC, independent of the transport.

    Accepted request shapes:
    - `tools/list`
    - `tools/call` with `{"name": ..., "arguments": {...}}`
    - any other method: the method is the tool name and `params` the arguments

    Every request ends in a response object; no exception leaves `process`.
    """

    registry: ToolRegistry
    binder: ParameterBinder = field(default_factory=ParameterBinder)
    invoker: DynamicInvoker = field(default_factory=DynamicInvoker)
    output_format: str = "raw"
    dispatcher: Dispatcher = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}")
        self.dispatcher = Dispatcher(error_mapper=_map_error, fallback=self._handle_direct_call)
        self.dispatcher.register(TOOLS_LIST, self._handle_tools_list)
        self.dispatcher.register(TOOLS_CALL, self._handle_tools_call)

    def register_method(self, method: str, handler: Handler) -> None:
        """Route a non-tool method (e.g. `initialize`) ahead of the direct-call fallback."""
        self.dispatcher.register(method, handler)

    # --- entry points ---

    async def process(self, raw: str | bytes) -> JsonRpcResponse:
        decoded = self._decode(raw)
        if isinstance(decoded, JsonRpcResponse):
            return decoded
        return await self.handle_request(decoded)

    async def process_raw(self, raw: str | bytes) -> str | None:
        """Process one encoded request; None means nothing is sent back (notification)."""
        decoded = self._decode(raw)
        if isinstance(decoded, JsonRpcResponse):
            return encode_response(decoded)
        resp = await self.handle_request(decoded)
        if decoded.is_notification:
            return None
        return encode_response(resp)

    async def handle_request(self, req: JsonRpcRequest) -> JsonRpcResponse:
        with obs.trace_request("mcp", request_id=req.id):
            obs.event("request.received", {"method": req.method})
            return await self.dispatcher.handle(req)

    def _decode(self, raw: str | bytes) -> JsonRpcRequest | JsonRpcResponse:
        try:
            return decode_request(raw)
        except JsonRpcCodecError as e:
            req_id = e.req_id if e.req_id is not None else peek_request_id(raw)
            logger.debug("rejecting request (id=%r): %s", req_id, e.message)
            return JsonRpcResponse(id=req_id, error=JsonRpcError(code=e.code, message=e.message, data=e.data))

    # --- method handlers ---

    def list_tools(self) -> dict[str, Any]:
        return {"tools": self.registry.list_specs()}

    def _handle_tools_list(self, req: JsonRpcRequest) -> dict[str, Any]:
        obs.event("request.classified", {"kind": "list"})
        return self.list_tools()

    async def _handle_tools_call(self, req: JsonRpcRequest) -> Any:
        obs.event("request.classified", {"kind": "call"})
        params = req.params
        if not isinstance(params, dict):
            raise InvalidParamsError("tools/call params must be an object")
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("tools/call params.name must be a non-empty string")
        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}
        return await self.call_tool(name, arguments, request_id=req.id)

    async def _handle_direct_call(self, req: JsonRpcRequest) -> Any:
        obs.event("request.classified", {"kind": "direct"})
        arguments = req.params if isinstance(req.params, dict) else {}
        return await self.call_tool(req.method, arguments, request_id=req.id)

    async def call_tool(self, name: str, arguments: dict[str, Any], *, request_id: Any | None = None) -> Any:
        ctx = TraceContext.current()
        if ctx is not None:
            ctx.tool_name = name

        desc = self.registry.lookup(name)
        if desc is None:
            obs.event("tool.not_found", {"tool": name})
            raise ToolNotFoundError(name)
        obs.event("tool.resolved", {"tool": name})

        session = CallSession.new(name, request_id=request_id, trace_id=obs.current_trace_id())
        with obs.with_stage("bind", {"tool": name}):
            try:
                bound = self.binder.bind(
                    desc.method,
                    desc.parameters,
                    arguments,
                    tool_name=name,
                    ambient=(session,),
                )
            except BindingError as e:
                obs.event("binding.failed", {"tool": name, "parameter": e.parameter, "error": type(e).__name__})
                raise
            obs.event("binding.bound", {"tool": name, "arity": len(bound)})

        with obs.with_stage("invoke", {"tool": name}):
            value = await self.invoker.invoke(desc, bound)

        return build_result(value, output_format=self.output_format)
