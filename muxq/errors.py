# muxq/errors.py


class MuxError(Exception):
    """Base for faults reported to the queue as an Error event."""

    message = "Muxing failed"

    def __init__(self, detail: str, message: str | None = None):
        super().__init__(detail)
        self.detail = detail
        if message:
            self.message = message


class ConfigurationError(MuxError):
    message = "Configuration error"


class ResourceError(MuxError):
    message = "Resource unavailable"


class InsufficientSpaceError(ResourceError):
    message = "Low disk space"


class ToolNotFoundError(ResourceError):
    def __init__(self, tool: str, detail: str):
        super().__init__(detail, f"{tool} not found")
        self.tool = tool


class ProcessError(MuxError):
    pass


class ProcessStartError(ProcessError):
    message = "Failed to start process"
