"""Bridge exceptions.

Every ``MessageError`` carries the exact ``reason`` string that is sent
back to the client as ``{"error": reason}``.
"""

from .protocol_constants import ERR_FRAME_TOO_LARGE, ERR_INVALID_JSON, ERR_MISSING_TEXT


class MessageError(Exception):
    """A frame that cannot be dispatched."""

    reason = ERR_INVALID_JSON

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.reason)
        self.detail = detail


class MalformedPayload(MessageError):
    reason = ERR_INVALID_JSON


class MissingText(MessageError):
    reason = ERR_MISSING_TEXT


class FrameTooLarge(MessageError):
    reason = ERR_FRAME_TOO_LARGE


class BridgeUnavailable(ConnectionError):
    """No bridge is listening at the expected socket path."""

    def __init__(self, socket_path: str, detail: str = ""):
        message = f"No bridge listening at {socket_path}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.socket_path = socket_path
