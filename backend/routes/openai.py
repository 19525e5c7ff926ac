"""OpenAI function-calling surface: GET /openai/functions and POST /openai/execute."""

import json
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict, Optional, Union
from middleware.auth import require_api_key
from middleware.state import get_dispatcher, get_registry
from models.tools import ErrorInfo, ToolInvocation
from routes.responses import error_response, present_conversion_rate
from services.dispatcher import Dispatcher
from services.errors import InvalidArguments
from services.tool_registry import ToolRegistry

router = APIRouter()


class FunctionCall(BaseModel):
    name: Optional[str] = None
    # OpenAI sends arguments as a JSON-encoded string
    arguments: Optional[Union[Dict[str, Any], str]] = None


class FunctionExecuteRequest(FunctionCall):
    function_name: Optional[str] = None
    function_call: Optional[FunctionCall] = None

    def resolve_call(self) -> FunctionCall:
        if self.function_call is not None:
            return self.function_call
        return FunctionCall(name=self.name or self.function_name, arguments=self.arguments)


def parse_arguments(arguments: Optional[Union[Dict[str, Any], str]]) -> Dict[str, Any]:
    if arguments is None:
        return {}
    if isinstance(arguments, dict):
        return arguments
    if not arguments.strip():
        return {}

    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise InvalidArguments(f"arguments is not valid JSON: {e.msg}")

    if not isinstance(parsed, dict):
        raise InvalidArguments("arguments must be a JSON object")
    return parsed


@router.get("/functions")
async def list_functions(registry: ToolRegistry = Depends(get_registry)):
    return {"functions": registry.as_openai_functions()}


@router.post("/execute", dependencies=[Depends(require_api_key)])
async def execute_function(request: FunctionExecuteRequest, dispatcher: Dispatcher = Depends(get_dispatcher)):
    """Run a function call and return {name, result}."""
    call = request.resolve_call()

    try:
        arguments = parse_arguments(call.arguments)
    except InvalidArguments as e:
        return error_response(ErrorInfo(kind=e.kind, message=e.message, status_code=e.status_code))

    result = await dispatcher.dispatch(ToolInvocation(tool_name=call.name, arguments=arguments))

    if not result.ok:
        return error_response(result.error)

    return {
        "name": call.name,
        "result": present_conversion_rate(result.payload)
    }
