"""MCP-style surface: GET /mcp/tools and POST /mcp/call."""

import json
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Any, Dict, Optional
from middleware.auth import require_api_key
from middleware.state import get_dispatcher, get_registry
from models.tools import ToolInvocation
from services.dispatcher import Dispatcher
from services.tool_registry import ToolRegistry

router = APIRouter()


class McpCallRequest(BaseModel):
    """
    Accepts the three shapes clients send:

        {"name": "get_user_analytics", "arguments": {...}}
        {"method": "get_user_analytics", "params": {...}}              (legacy)
        {"method": "tools/call", "params": {"name": ..., "arguments": {...}}}
    """
    name: Optional[str] = None
    arguments: Optional[Dict[str, Any]] = None
    method: Optional[str] = None
    params: Optional[Dict[str, Any]] = None

    def to_invocation(self) -> ToolInvocation:
        if self.method == "tools/call" and self.params is not None:
            return ToolInvocation(
                tool_name=self.params.get("name"),
                arguments=self.params.get("arguments") or {}
            )

        if self.name is not None:
            return ToolInvocation(tool_name=self.name, arguments=self.arguments or {})

        return ToolInvocation(tool_name=self.method, arguments=self.params or {})


def text_content(text: str, is_error: bool = False) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


@router.get("/tools")
async def list_mcp_tools(registry: ToolRegistry = Depends(get_registry)):
    return {"tools": registry.as_mcp_tools()}


@router.post("/call", dependencies=[Depends(require_api_key)])
async def call_mcp_tool(request: McpCallRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Run a tool and wrap its result in an MCP content envelope."""
    invocation = request.to_invocation()
    result = await dispatcher.dispatch(invocation)

    if not result.ok:
        body = text_content(result.error.message, is_error=True)
        body["error"] = result.error.message
        return JSONResponse(status_code=result.error.status_code, content=body)

    return text_content(json.dumps(result.payload, default=str))
