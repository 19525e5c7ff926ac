"""OpenAI plugin surface: manifest, OpenAPI documents and POST /functions/{tool_name}."""

import yaml
from fastapi import APIRouter, Body, Depends
from fastapi.responses import Response
from typing import Any, Dict, Optional
from config import Settings
from middleware.auth import require_api_key
from middleware.state import get_dispatcher, get_registry, get_settings
from models.tools import ToolInvocation
from routes.responses import error_response, present_conversion_rate
from services.dispatcher import Dispatcher
from services.tool_registry import ToolRegistry

router = APIRouter()


@router.get("/.well-known/ai-plugin.json")
async def plugin_manifest(
    registry: ToolRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    return registry.describe_as_plugin_manifest(settings.server_url, bearer_auth=bool(settings.api_key))


@router.get("/openapi.json")
async def openapi_json(
    registry: ToolRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    return registry.describe_as_openapi(settings.server_url, bearer_auth=bool(settings.api_key))


@router.get("/openapi.yaml")
async def openapi_yaml(
    registry: ToolRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings)
):
    document = registry.describe_as_openapi(settings.server_url, bearer_auth=bool(settings.api_key))
    return Response(
        content=yaml.safe_dump(document, sort_keys=False, allow_unicode=True),
        media_type="application/yaml"
    )


@router.post("/functions/{tool_name}", dependencies=[Depends(require_api_key)])
async def call_function(
    tool_name: str,
    arguments: Optional[Dict[str, Any]] = Body(None),
    dispatcher: Dispatcher = Depends(get_dispatcher)
):
    """Run the named tool with the request body as its arguments."""
    result = await dispatcher.dispatch(ToolInvocation(tool_name=tool_name, arguments=arguments or {}))

    if not result.ok:
        return error_response(result.error)

    return present_conversion_rate(result.payload)
