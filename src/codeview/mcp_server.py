"""JSON-RPC 2.0 dispatcher exposing the metadata store to agents.

One request in, one envelope out.  The dispatcher holds no per-request
state: the store is the only shared resource and does its own locking.

Error mapping:

* body is not a JSON object   -> -32700 ``Parse error`` (id: null)
* unknown method              -> -32601 ``Method not found: <method>``
* anything a method raises    -> -32603 with the exception text

Tool arguments are decoded in full before a handler touches the store, so
a malformed batch never partially applies.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from mcp.types import (
    INTERNAL_ERROR,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    CallToolResult,
    Implementation,
    InitializeResult,
    ListPromptsResult,
    ListToolsResult,
    PromptsCapability,
    ServerCapabilities,
    Tool,
    ToolsCapability,
)

from codeview import __version__
from codeview.mcp_tools import suggestions as _suggestions_tools
from codeview.mcp_tools import tests as _tests_tools
from codeview.mcp_tools.common import ToolError
from codeview.prompts import get_prompt, list_prompts
from codeview.validation import decode_tool_args

if TYPE_CHECKING:
    from codeview.store import MetadataStore

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "codeview"

_TOOL_MODULES = (_tests_tools, _suggestions_tools)


def _dump(model: Any) -> dict[str, Any]:
    """Serialize an mcp.types model to its camelCase wire form."""
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def _response(request_id: Any, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _params(params: Any) -> dict[str, Any]:
    if params is None:
        return {}
    if not isinstance(params, dict):
        msg = "invalid params: params must be an object"
        raise ValueError(msg)
    return params


def _name_and_arguments(params: Any) -> tuple[str, dict[str, Any]]:
    data = _params(params)
    name = data.get("name")
    if not isinstance(name, str):
        msg = "invalid params: name must be a string"
        raise ValueError(msg)
    arguments = data.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        msg = "invalid params: arguments must be an object"
        raise ValueError(msg)
    return name, arguments


class McpDispatcher:
    """Route JSON-RPC requests to protocol methods, tools, and prompts."""

    def __init__(self, store: MetadataStore) -> None:
        self.store = store
        self._tools: list[Tool] = []
        self._tool_handlers: dict[str, Callable[..., Any]] = {}
        for module in _TOOL_MODULES:
            tools, handlers = module.register()
            self._tools.extend(tools)
            self._tool_handlers.update(handlers)
        self._methods: dict[str, Callable[[Any], dict[str, Any]]] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "prompts/list": self._list_prompts,
            "prompts/get": self._get_prompt,
        }

    # -- Entry points ---------------------------------------------------------

    def handle(self, body: bytes | str) -> dict[str, Any]:
        """Parse a raw request body and dispatch it."""
        try:
            request = json.loads(body)
        except ValueError:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors.
            return _error(None, PARSE_ERROR, "Parse error")
        if not isinstance(request, dict):
            return _error(None, PARSE_ERROR, "Parse error")
        return self.handle_request(request)

    def handle_request(self, request: dict[str, Any]) -> dict[str, Any]:
        """Dispatch an already-decoded request object."""
        request_id = request.get("id")
        method = request.get("method")
        handler = self._methods.get(method) if isinstance(method, str) else None
        if handler is None:
            shown = method if isinstance(method, str) else ""
            return _error(request_id, METHOD_NOT_FOUND, f"Method not found: {shown}")

        try:
            result = handler(request.get("params"))
        except (ValueError, ToolError) as exc:
            return _error(request_id, INTERNAL_ERROR, str(exc))
        except Exception as exc:
            logger.exception("Unhandled error in %s", method)
            return _error(request_id, INTERNAL_ERROR, str(exc))
        return _response(request_id, result)

    # -- Protocol methods -----------------------------------------------------

    def _initialize(self, params: Any) -> dict[str, Any]:
        return _dump(
            InitializeResult(
                protocolVersion=PROTOCOL_VERSION,
                capabilities=ServerCapabilities(tools=ToolsCapability(), prompts=PromptsCapability()),
                serverInfo=Implementation(name=SERVER_NAME, version=__version__),
            )
        )

    def _list_tools(self, params: Any) -> dict[str, Any]:
        return _dump(ListToolsResult(tools=self._tools))

    def _call_tool(self, params: Any) -> dict[str, Any]:
        name, arguments = _name_and_arguments(params)
        handler = self._tool_handlers.get(name)
        if handler is None:
            msg = f"unknown tool: {name}"
            raise ValueError(msg)

        t0 = time.monotonic()
        try:
            content = handler(self.store, decode_tool_args(name, arguments))
        except Exception:
            logger.error("tool_error", extra={"tool": name, "args_data": arguments}, exc_info=True)
            raise
        duration_ms = round((time.monotonic() - t0) * 1000, 1)
        logger.info("tool_call", extra={"tool": name, "args_data": arguments, "duration_ms": duration_ms})
        return _dump(CallToolResult(content=content))

    def _list_prompts(self, params: Any) -> dict[str, Any]:
        return _dump(ListPromptsResult(prompts=list_prompts()))

    def _get_prompt(self, params: Any) -> dict[str, Any]:
        name, arguments = _name_and_arguments(params)
        return _dump(get_prompt(name, arguments))
