"""Error kinds raised while resolving and running tools."""


class ToolError(Exception):
    """Base class for every failure a tool invocation can surface."""

    kind = "ToolError"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingToolName(ToolError):
    kind = "MissingToolName"
    status_code = 400

    def __init__(self, message: str = "Tool name is required"):
        super().__init__(message)


class UnknownTool(ToolError):
    kind = "UnknownTool"
    status_code = 400

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class MissingUserId(ToolError):
    kind = "MissingUserId"
    status_code = 400

    def __init__(self, action: str):
        super().__init__(f"userId is required for action '{action}'")


class UnknownAction(ToolError):
    kind = "UnknownAction"
    status_code = 400

    def __init__(self, action: str):
        super().__init__(f"Unknown action: {action}")
        self.action = action


class InvalidArguments(ToolError):
    kind = "InvalidArguments"
    status_code = 400


class OperationFailed(ToolError):
    kind = "OperationFailed"
    status_code = 500
