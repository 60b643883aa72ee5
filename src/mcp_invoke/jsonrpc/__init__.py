from .codec import (
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    SERVER_ERROR,
    JsonRpcCodecError,
    decode_request,
    encode_error,
    encode_response,
    peek_request_id,
    to_jsonable,
)
from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse
from .dispatcher import Dispatcher, JsonRpcAppError, default_error_mapper
from .stdio_transport import StdioTransport

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "Dispatcher",
    "JsonRpcAppError",
    "default_error_mapper",
    "JsonRpcCodecError",
    "decode_request",
    "encode_response",
    "encode_error",
    "peek_request_id",
    "to_jsonable",
    "StdioTransport",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "SERVER_ERROR",
]
