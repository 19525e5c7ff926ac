"""Dependencies handing the app-wide objects built in create_app to routes."""

from fastapi import Request
from config import Settings
from services.dispatcher import Dispatcher
from services.tool_registry import ToolRegistry


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ToolRegistry:
    return request.app.state.registry


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher
