"""Shared models for tool descriptors, invocations and results."""

from datetime import date
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SchemaNode(BaseModel):
    """A (small) JSON Schema node describing a tool parameter."""
    model_config = ConfigDict(frozen=True)

    type: str
    format: Optional[str] = None
    description: Optional[str] = None
    enum: Optional[List[str]] = None
    properties: Optional[Dict[str, "SchemaNode"]] = None
    items: Optional["SchemaNode"] = None
    required: List[str] = []

    @model_validator(mode="after")
    def check_required_properties(self) -> "SchemaNode":
        missing = [name for name in self.required if name not in (self.properties or {})]
        if missing:
            raise ValueError(f"required properties not declared: {', '.join(missing)}")
        return self

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.type}
        if self.format:
            schema["format"] = self.format
        if self.description:
            schema["description"] = self.description
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        if self.properties is not None:
            schema["properties"] = {
                name: node.to_json_schema() for name, node in self.properties.items()
            }
        if self.items is not None:
            schema["items"] = self.items.to_json_schema()
        if self.required:
            schema["required"] = list(self.required)
        return schema


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: SchemaNode


class ToolAlias(BaseModel):
    """Another name for a registered tool, with some arguments already bound."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    target: str
    bound_arguments: Dict[str, Any] = {}


class ToolInvocation(BaseModel):
    tool_name: Optional[str] = None
    arguments: Dict[str, Any] = {}


class ErrorInfo(BaseModel):
    kind: str
    message: str
    status_code: int


class ToolResult(BaseModel):
    payload: Optional[Any] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# Argument models, one per tool

class DateRange(BaseModel):
    """Optional reporting window; ordering of the bounds is not checked."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def blank_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_bounded(self) -> bool:
        return self.start_date is not None and self.end_date is not None


class UserAnalyticsArgs(DateRange):
    pass


class PaymentAnalyticsArgs(DateRange):
    pass


class UserPatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    def to_patch(self) -> Dict[str, Any]:
        """Only the fields the caller actually provided."""
        return self.model_dump(exclude_none=True)


class ManageUserArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Left open here so unsupported values surface as UnknownAction
    action: str
    user_id: Optional[str] = Field(None, alias="userId")
    data: Optional[UserPatch] = None
