"""MCP server exposing the YC company dataset as query tools.

Serves JSON-RPC over HTTP (FastAPI) or over stdin/stdout. Both transports
share :func:`dispatch`.
"""

import argparse
import asyncio
import datetime as dt
import importlib
import json
import logging
import os
import pkgutil
import sys
import uuid
from typing import Any, Dict, List, Optional, Union

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from registry import tools
from settings import settings

PROTOCOL_VERSION = "2025-03-26"
SERVER_NAME = "yc-lists"
SERVER_VERSION = "1.0.0"
SERVER_ID = f"{SERVER_NAME}-{uuid.uuid4()}"
START_TIME = dt.datetime.utcnow()

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger("mcp")


def iso_now() -> str:
    """Return current UTC time in ISO format."""
    return dt.datetime.utcnow().isoformat() + "Z"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
class JSONRPCError(BaseModel):
    code: int
    message: str
    data: Optional[Any] = None


class JSONRPCResponse(BaseModel):
    jsonrpc: str = "2.0"
    id: Union[str, int, None]
    result: Optional[Any] = None
    error: Optional[JSONRPCError] = None

    def to_wire(self) -> Dict[str, Any]:
        body = self.model_dump(exclude={"result", "error"})
        if self.error is not None:
            body["error"] = self.error.model_dump(exclude_none=True)
        else:
            body["result"] = self.result
        return body


class InitReq(BaseModel):
    id: Union[str, int]
    jsonrpc: str = "2.0"
    method: str = "initialize"
    params: Dict[str, Any] = Field(default_factory=dict)


class InvokeReq(BaseModel):
    id: Union[str, int]
    jsonrpc: str = "2.0"
    method: str = "tools/call"
    params: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Plugins
# ---------------------------------------------------------------------------
def load_plugins(path: str = "plugins") -> None:
    """Dynamically import modules from *path* to register tools."""
    full = os.path.join(os.path.dirname(__file__), path)
    if not os.path.isdir(full):
        return
    for _, mod, _ in pkgutil.iter_modules([full]):
        try:
            importlib.import_module(f"{path}.{mod}")
            logger.info("Loaded plugin %s", mod)
        except ModuleNotFoundError as e:
            logger.warning("Skipping plugin %s: %s", mod, e)
        except Exception as e:
            logger.exception("Failed to load plugin %s: %s", mod, e)


load_plugins()


# ---------------------------------------------------------------------------
# JSON-RPC dispatch
# ---------------------------------------------------------------------------
def _error(call_id, code: int, message: str) -> Dict[str, Any]:
    return JSONRPCResponse(id=call_id, error=JSONRPCError(code=code, message=message)).to_wire()


def server_info() -> Dict[str, Any]:
    return {
        "serverId": SERVER_ID,
        "protocolVersion": PROTOCOL_VERSION,
        "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        "capabilities": {"tools": {}},
        "serverTime": iso_now(),
    }


async def call_tool(name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Run tool *name* and wrap its output as MCP text content.

    Tool failures are reported in-band with ``isError`` so one bad call
    never breaks the session.
    """
    try:
        result = await tools[name].handler(arguments)
    except HTTPException as e:
        logger.warning("Tool %s rejected call: %s", name, e.detail)
        return {"content": [{"type": "text", "text": f"Error: {e.detail}"}], "isError": True}
    except Exception as e:
        logger.exception("Tool %s failed: %s", name, e)
        return {"content": [{"type": "text", "text": f"Error: {e}"}], "isError": True}
    return {
        "content": [{"type": "text", "text": json.dumps(result, indent=2)}],
        "isError": False,
    }


async def dispatch(call: Any) -> Optional[Dict[str, Any]]:
    """Handle one JSON-RPC message; notifications produce ``None``."""
    if not isinstance(call, dict) or not isinstance(call.get("method"), str):
        call_id = call.get("id") if isinstance(call, dict) else None
        return _error(call_id, INVALID_REQUEST, "Invalid request")

    method = call["method"]
    call_id = call.get("id")
    params = call.get("params") or {}
    if method.startswith("notifications/"):
        return None
    if not isinstance(params, dict):
        return _error(call_id, INVALID_PARAMS, "params must be an object")

    if method == "initialize":
        result = server_info()
    elif method == "ping":
        result = {}
    elif method == "tools/list":
        result = {"tools": [t.describe() for t in tools.values()]}
    elif method == "tools/call":
        name = params.get("name")
        if not isinstance(name, str) or name not in tools:
            return _error(call_id, INVALID_PARAMS, f"Unknown tool: {name}")
        arguments = params.get("arguments") or {}
        result = await call_tool(name, arguments)
    else:
        return _error(call_id, METHOD_NOT_FOUND, f"Unknown method {method}")
    return JSONRPCResponse(id=call_id, result=result).to_wire()


async def dispatch_payload(payload: Any) -> Union[Dict[str, Any], List[Dict[str, Any]], None]:
    """Dispatch a single message or a batch, dropping notification replies."""
    if isinstance(payload, list):
        if not payload:
            return _error(None, INVALID_REQUEST, "Empty batch")
        results = [await dispatch(call) for call in payload]
        return [r for r in results if r is not None] or None
    return await dispatch(payload)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(title="YC Lists MCP Server", version=SERVER_VERSION)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.exception_handler(Exception)
async def universal_error(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": str(exc)})


@app.get("/health")
async def health():
    from plugins import company_db

    return {
        "status": "ok",
        "uptime": str(dt.datetime.utcnow() - START_TIME),
        "now": iso_now(),
        "tools": len(tools),
        "companies": company_db.store.count(),
        "dataLoaded": company_db.store.loaded,
    }


@app.get("/v1/tool")
async def list_tools():
    return [t.describe() for t in tools.values()]


@app.post("/v1/initialize")
async def initialize(req: InitReq):
    logger.info("Client initialized (version %s)", req.params.get("version", "unknown"))
    return JSONRPCResponse(id=req.id, result=server_info())


@app.post("/v1/tool/{tool_name}/invoke")
async def invoke_tool(tool_name: str, req: InvokeReq):
    if tool_name not in tools:
        raise HTTPException(404, "Tool not found")
    result = await tools[tool_name].handler(req.params)
    return JSONRPCResponse(id=req.id, result=result)


@app.post("/mcp")
async def mcp_endpoint(request: Request):
    """Unified MCP endpoint supporting optional SSE."""
    accepts_sse = "text/event-stream" in request.headers.get("accept", "")
    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(_error(None, PARSE_ERROR, "Parse error"))

    response = await dispatch_payload(payload)
    if response is None:
        return Response(status_code=202)

    if accepts_sse:
        items = response if isinstance(response, list) else [response]

        async def event_stream():
            for item in items:
                yield {"data": json.dumps(item)}
                await asyncio.sleep(0)

        return EventSourceResponse(event_stream())
    return JSONResponse(response)


@app.get("/mcp")
async def mcp_keepalive():
    """Keep-alive SSE stream."""

    async def ping():
        while True:
            yield {"data": json.dumps({"time": iso_now()})}
            await asyncio.sleep(15)

    return EventSourceResponse(ping())


# ---------------------------------------------------------------------------
# Transports & CLI
# ---------------------------------------------------------------------------
async def _stdio_loop() -> None:
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except ValueError:
            response = _error(None, PARSE_ERROR, "Parse error")
        else:
            response = await dispatch_payload(payload)
        if response is not None:
            sys.stdout.write(json.dumps(response) + "\n")
            sys.stdout.flush()


def run_stdio() -> None:
    """Serve JSON-RPC messages, one per line, over stdin/stdout."""
    logger.info("YC Lists MCP server running on stdio")
    asyncio.run(_stdio_loop())


def run_servers(api_port: Optional[int] = None) -> None:
    """Run FastAPI application."""
    port = api_port or settings.PORT
    logger.info("YC Lists MCP server listening on port %d (%s)", port, settings.ENVIRONMENT)
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=not settings.is_production,
    )


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        port = 0
    if not 0 < port < 65536:
        raise argparse.ArgumentTypeError("Invalid port number. Must be between 1 and 65535.")
    return port


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="yc-companies-mcp", description="YC Lists MCP Server")
    parser.add_argument("--stdio", action="store_true", help="Use STDIO transport (default)")
    parser.add_argument("--http", action="store_true", help="Use HTTP transport on $PORT")
    parser.add_argument("--port", type=_port, help="Use HTTP transport on this port")
    args = parser.parse_args(argv)

    if args.stdio and (args.http or args.port):
        parser.error("--stdio cannot be combined with --http or --port")
    if args.http or args.port:
        run_servers(args.port)
    else:
        run_stdio()


if __name__ == "__main__":
    main()
