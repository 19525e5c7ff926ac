"""Registry of the tools this server exposes, and their discovery documents."""

from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Type
from pydantic import BaseModel

from models.tools import (
    ManageUserArgs,
    PaymentAnalyticsArgs,
    SchemaNode,
    ToolAlias,
    ToolDescriptor,
    UserAnalyticsArgs,
)
from services import analytics_service

Handler = Callable[[Any, BaseModel], Awaitable[Any]]

SERVER_NAME = "Analytics MCP Server"
SERVER_DESCRIPTION = "MCP server for user and payment analytics"
SERVER_VERSION = "1.0.0"


class RegisteredTool(NamedTuple):
    descriptor: ToolDescriptor
    arguments_model: Type[BaseModel]
    handler: Handler


class ResolvedTool(NamedTuple):
    tool: RegisteredTool
    bound_arguments: Dict[str, Any]


def to_camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


class ToolRegistry:
    def __init__(self):
        self._tools: Dict[str, RegisteredTool] = {}
        self._aliases: Dict[str, ToolAlias] = {}

    def register(self, descriptor: ToolDescriptor, arguments_model: Type[BaseModel], handler: Handler) -> None:
        if descriptor.name in self._tools or descriptor.name in self._aliases:
            raise ValueError(f"Tool already registered: {descriptor.name}")
        self._tools[descriptor.name] = RegisteredTool(descriptor, arguments_model, handler)

    def register_alias(self, alias: ToolAlias) -> None:
        if alias.target not in self._tools:
            raise ValueError(f"Alias {alias.name} points at unknown tool: {alias.target}")
        if alias.name in self._tools or alias.name in self._aliases:
            raise ValueError(f"Tool already registered: {alias.name}")
        self._aliases[alias.name] = alias

    def resolve(self, name: str) -> Optional[ResolvedTool]:
        """Exact, case-sensitive lookup over tools first, then aliases."""
        tool = self._tools.get(name)
        if tool is not None:
            return ResolvedTool(tool, {})

        alias = self._aliases.get(name)
        if alias is not None:
            return ResolvedTool(self._tools[alias.target], dict(alias.bound_arguments))

        return None

    def list_descriptors(self, include_aliases: bool = False) -> List[ToolDescriptor]:
        descriptors = [tool.descriptor for tool in self._tools.values()]
        if include_aliases:
            descriptors.extend(self._alias_descriptor(alias) for alias in self._aliases.values())
        return descriptors

    def _alias_descriptor(self, alias: ToolAlias) -> ToolDescriptor:
        # Bound arguments are no longer the caller's to choose
        target = self._tools[alias.target].descriptor.parameters
        properties = {
            name: node for name, node in (target.properties or {}).items()
            if name not in alias.bound_arguments
        }
        required = [name for name in target.required if name in properties]

        return ToolDescriptor(
            name=alias.name,
            description=alias.description,
            parameters=SchemaNode(type="object", properties=properties, required=required)
        )

    # Discovery renderings

    def as_tool_list(self, include_aliases: bool = True) -> List[Dict[str, Any]]:
        return [
            {
                "name": d.name,
                "description": d.description,
                "input_schema": d.parameters.to_json_schema()
            }
            for d in self.list_descriptors(include_aliases)
        ]

    def as_mcp_tools(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": d.name,
                "description": d.description,
                "inputSchema": d.parameters.to_json_schema()
            }
            for d in self.list_descriptors()
        ]

    def as_openai_functions(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": d.name,
                "description": d.description,
                "parameters": d.parameters.to_json_schema()
            }
            for d in self.list_descriptors()
        ]

    def describe_as_openapi(self, base_url: str, bearer_auth: bool = False) -> Dict[str, Any]:
        """OpenAPI 3 document with one POST /functions/{name} operation per tool."""
        paths: Dict[str, Any] = {}

        for d in self.list_descriptors():
            error_ref = {"application/json": {"schema": {"$ref": "#/components/schemas/ToolError"}}}
            operation: Dict[str, Any] = {
                "operationId": to_camel_case(d.name),
                "summary": d.description,
                "requestBody": {
                    "required": bool(d.parameters.required),
                    "content": {"application/json": {"schema": d.parameters.to_json_schema()}}
                },
                "responses": {
                    "200": {
                        "description": "Tool result",
                        "content": {"application/json": {"schema": {"type": "object"}}}
                    },
                    "400": {"description": "Invalid tool call", "content": error_ref},
                    "500": {"description": "Operation failed", "content": error_ref}
                }
            }
            if bearer_auth:
                operation["responses"]["401"] = {"description": "Unauthorized", "content": error_ref}
            paths[f"/functions/{d.name}"] = {"post": operation}

        components: Dict[str, Any] = {
            "schemas": {
                "ToolError": {
                    "type": "object",
                    "properties": {"error": {"type": "string"}},
                    "required": ["error"]
                }
            }
        }

        document: Dict[str, Any] = {
            "openapi": "3.0.1",
            "info": {
                "title": SERVER_NAME,
                "description": SERVER_DESCRIPTION,
                "version": SERVER_VERSION
            },
            "servers": [{"url": base_url}],
            "paths": paths,
            "components": components
        }

        if bearer_auth:
            components["securitySchemes"] = {"bearerAuth": {"type": "http", "scheme": "bearer"}}
            document["security"] = [{"bearerAuth": []}]

        return document

    def describe_as_plugin_manifest(self, base_url: str, bearer_auth: bool = False) -> Dict[str, Any]:
        tool_names = ", ".join(d.name for d in self.list_descriptors())

        auth: Dict[str, Any] = {"type": "none"}
        if bearer_auth:
            auth = {"type": "service_http", "authorization_type": "bearer"}

        return {
            "schema_version": "v1",
            "name_for_human": "Analytics",
            "name_for_model": "analytics",
            "description_for_human": "User and payment analytics, plus user management.",
            "description_for_model": (
                "Query user counts, payment revenue and conversion, and list, update "
                f"or delete users. Available functions: {tool_names}."
            ),
            "auth": auth,
            "api": {
                "type": "openapi",
                "url": f"{base_url}/openapi.yaml",
                "is_user_authenticated": False
            }
        }


def _date_range_schema() -> SchemaNode:
    return SchemaNode(
        type="object",
        properties={
            "startDate": SchemaNode(type="string", format="date", description="Start date in YYYY-MM-DD format"),
            "endDate": SchemaNode(type="string", format="date", description="End date in YYYY-MM-DD format")
        }
    )


def build_registry() -> ToolRegistry:
    """The registry of analytics tools, in the order they are advertised."""
    registry = ToolRegistry()

    registry.register(
        ToolDescriptor(
            name="get_user_analytics",
            description="Get analytics about users including total, active, and new users",
            parameters=_date_range_schema()
        ),
        UserAnalyticsArgs,
        analytics_service.user_analytics
    )

    registry.register(
        ToolDescriptor(
            name="get_payment_analytics",
            description="Get payment analytics including revenue and transaction data",
            parameters=_date_range_schema()
        ),
        PaymentAnalyticsArgs,
        analytics_service.payment_analytics
    )

    registry.register(
        ToolDescriptor(
            name="manage_user",
            description="List, update or delete users",
            parameters=SchemaNode(
                type="object",
                properties={
                    "action": SchemaNode(
                        type="string",
                        enum=list(analytics_service.MANAGE_USER_ACTIONS),
                        description="Operation to perform"
                    ),
                    "userId": SchemaNode(type="string", description="User ID (required for update and delete)"),
                    "data": SchemaNode(
                        type="object",
                        description="Fields to change on update",
                        properties={
                            "name": SchemaNode(type="string"),
                            "email": SchemaNode(type="string"),
                            "role": SchemaNode(type="string")
                        }
                    )
                },
                required=["action"]
            )
        ),
        ManageUserArgs,
        analytics_service.manage_user
    )

    registry.register_alias(
        ToolAlias(
            name="list_users",
            description="Get a list of all users in the system",
            target="manage_user",
            bound_arguments={"action": "list"}
        )
    )

    return registry
