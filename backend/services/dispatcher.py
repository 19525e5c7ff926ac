"""Resolves tool invocations to analytics operations and wraps their outcome."""

import logging
from typing import Any, Dict
from pydantic import ValidationError

from models.tools import ErrorInfo, ToolInvocation, ToolResult
from services.errors import InvalidArguments, MissingToolName, OperationFailed, ToolError, UnknownTool
from services.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


def describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ())) or "arguments"
        problems.append(f"{field}: {item.get('msg')}")
    return "Invalid arguments: " + "; ".join(problems)


class Dispatcher:
    """
    Single entry point for running a tool, whatever surface the call came in on.

    `dispatch` never raises: every failure comes back as a ToolResult whose
    `error` carries the kind, message and HTTP status to report.
    """

    def __init__(self, registry: ToolRegistry, data_client: Any):
        self.registry = registry
        self.data_client = data_client

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        try:
            payload = await self._run(invocation)
        except ToolError as e:
            level = logging.ERROR if e.status_code >= 500 else logging.WARNING
            logger.log(level, "Tool %s failed: %s (%s)", invocation.tool_name, e.message, e.kind)
            return ToolResult(error=ErrorInfo(kind=e.kind, message=e.message, status_code=e.status_code))
        except Exception as e:
            logger.exception("Tool %s raised an unexpected error", invocation.tool_name)
            failure = OperationFailed(str(e))
            return ToolResult(
                error=ErrorInfo(kind=failure.kind, message=failure.message, status_code=failure.status_code)
            )

        logger.info("Tool %s completed", invocation.tool_name)
        return ToolResult(payload=payload)

    async def _run(self, invocation: ToolInvocation) -> Any:
        if not invocation.tool_name:
            raise MissingToolName()

        resolved = self.registry.resolve(invocation.tool_name)
        if resolved is None:
            raise UnknownTool(invocation.tool_name)

        arguments: Dict[str, Any] = dict(invocation.arguments or {})
        arguments.update(resolved.bound_arguments)

        try:
            parsed = resolved.tool.arguments_model.model_validate(arguments)
        except ValidationError as e:
            raise InvalidArguments(describe_validation_error(e))

        logger.info("Dispatching %s", invocation.tool_name)
        return await resolved.tool.handler(self.data_client, parsed)
