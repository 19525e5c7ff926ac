"""Plain tool surface: GET /tools and POST /execute."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict, Optional
from middleware.auth import require_api_key
from middleware.state import get_dispatcher, get_registry
from models.tools import ToolInvocation
from routes.responses import error_response, present_conversion_rate
from services.dispatcher import Dispatcher
from services.tool_registry import ToolRegistry

router = APIRouter()


class ExecuteRequest(BaseModel):
    tool: Optional[str] = None
    arguments: Optional[Dict[str, Any]] = None


@router.get("/tools")
async def list_tools(registry: ToolRegistry = Depends(get_registry)):
    """List every tool, including the list_users shortcut."""
    return {"tools": registry.as_tool_list(include_aliases=True)}


@router.post("/execute", dependencies=[Depends(require_api_key)])
async def execute_tool(request: ExecuteRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Run a tool and return its result as the response body."""
    result = await dispatcher.dispatch(
        ToolInvocation(tool_name=request.tool, arguments=request.arguments or {})
    )

    if not result.ok:
        return error_response(result.error)

    # This surface has always reported the rate as a fixed two-decimal string
    return present_conversion_rate(result.payload, as_string=True)


@router.post("/tool/call", dependencies=[Depends(require_api_key)])
async def call_tool(request: ExecuteRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Alternative path for /execute."""
    return await execute_tool(request, dispatcher)
