"""JSON-RPC 2.0 request objects.

    {"method": "echo", "params": {"x": 1}, "jsonrpc": "2.0"}

``params`` is an array or an object, and is left out entirely (never null)
when the caller has none. Batches are not supported.
"""

from typing import Any

from hybrid_rpc.constants import JSONRPC_VERSION
from hybrid_rpc.exceptions import MethodError

__all__ = [
    "build_request",
    "parse_request",
]

Params = list[Any] | dict[str, Any]


def build_request(method: str, params: Params | tuple[Any, ...] | None = None) -> dict[str, Any]:
    """
    Build a request object.

    Args:
        method: Remote method name
        params: Positional (list/tuple) or named (dict) parameters, or None

    Returns:
        Request object ready for JSON serialization

    Raises:
        TypeError: If params is a bare scalar
    """
    request: dict[str, Any] = {"method": str(method), "jsonrpc": JSONRPC_VERSION}
    if params is None:
        return request
    if isinstance(params, tuple):
        params = list(params)
    if not isinstance(params, (list, dict)):
        raise TypeError(f"params must be a list or dict, not {type(params).__name__}")
    request["params"] = params
    return request


def parse_request(obj: Any) -> tuple[str, Params | None]:
    """
    Validate a decoded request object.

    Returns:
        Tuple of (method, params); params is None when absent

    Raises:
        MethodError: If obj is not a well-formed JSON-RPC 2.0 request
    """
    if not isinstance(obj, dict):
        raise MethodError(None, "Request must be a JSON object")

    method = obj.get("method")
    if not isinstance(method, str) or not method:
        raise MethodError(None, "Request method must be a non-empty string")

    if obj.get("jsonrpc") != JSONRPC_VERSION:
        raise MethodError(method, f"Unsupported jsonrpc version {obj.get('jsonrpc')!r}")

    params = obj.get("params")
    if params is not None and not isinstance(params, (list, dict)):
        raise MethodError(method, "Request params must be an array or object")
    return (method, params)
