"""Turns validated bridge messages into host side effects and one response.

Each message variant is handled by a ``_handle_<kind>`` function. Host
calls are fire-and-forget: a failing host never changes the response the
editor gets, and a coroutine-returning host is scheduled, not awaited.
"""

import asyncio
import functools
import inspect
import logging

from .errors import MessageError
from .host import HostHandle
from .messages import (
    ContextMessage,
    ErrorResponse,
    HealthMessage,
    HealthResponse,
    Message,
    OkResponse,
    PromptMessage,
    Response,
    UnknownKindMessage,
    validate,
)
from .protocol_constants import ERR_UNKNOWN_TYPE

logger = logging.getLogger(__name__)

# In-flight host deliveries only. The event loop holds tasks weakly, so this set
# keeps them alive until they finish; it carries no session state.
_pending_deliveries: set[asyncio.Future] = set()


def _delivery_finished(name: str, task: asyncio.Future):
    """Report a host delivery that failed after the editor was already answered."""
    _pending_deliveries.discard(task)
    if task.cancelled():
        logger.debug("Host delivery %s cancelled", name)
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Host delivery %s failed after response: %s", name, exc, exc_info=exc)


def fire_and_forget(fn, *args) -> None:
    name = getattr(fn, "__name__", repr(fn))
    try:
        result = fn(*args)
    except Exception:
        logger.exception("Host call %s failed", name)
        return
    if not inspect.isawaitable(result):
        return
    try:
        task = asyncio.ensure_future(result)
    except RuntimeError:
        # No running loop to schedule on
        logger.error("Host call %s returned an awaitable outside an event loop", name)
        if inspect.iscoroutine(result):
            result.close()
        return
    _pending_deliveries.add(task)
    task.add_done_callback(functools.partial(_delivery_finished, name))


# ------------------------------------------------------------------
# Formatting
# ------------------------------------------------------------------

def line_count(text: str) -> int:
    """Number of newline-separated segments, as shown in notifications."""
    return len(text.split("\n"))


def format_block(msg: ContextMessage | PromptMessage) -> str:
    """Render the text as a fenced block, headed by the file label if any."""
    content = ""
    if msg.file:
        content += f"File: {msg.file}"
        if msg.filetype:
            content += f" ({msg.filetype})"
        content += "\n"
    content += "```" + (msg.filetype or "") + "\n"
    content += msg.text
    if not msg.text.endswith("\n"):
        content += "\n"
    content += "```"
    return content


def compose_prompt(msg: PromptMessage) -> str:
    """The follow-up message: optional instruction, blank line, then the block."""
    message = ""
    if msg.prompt:
        message += msg.prompt + "\n\n"
    return message + format_block(msg)


# ------------------------------------------------------------------
# Handlers
# ------------------------------------------------------------------

def _handle_health(msg: HealthMessage, host: HostHandle) -> Response:
    return HealthResponse(cwd=host.current_working_directory())


def _handle_context(msg: ContextMessage, host: HostHandle) -> Response:
    fire_and_forget(host.inject_context_message, format_block(msg))
    fire_and_forget(host.notify, f"nvim: received {line_count(msg.text)} lines", "info")
    return OkResponse()


def _handle_prompt(msg: PromptMessage, host: HostHandle) -> Response:
    fire_and_forget(host.inject_follow_up, compose_prompt(msg))
    fire_and_forget(host.notify, f"nvim: prompting with {line_count(msg.text)} lines", "info")
    return OkResponse()


def _handle_unknown(msg: UnknownKindMessage, host: HostHandle) -> Response:
    logger.warning("Rejecting message with unknown type %r", msg.kind)
    return ErrorResponse(error=ERR_UNKNOWN_TYPE)


# Dispatch table: message variant -> handler
_HANDLERS = {
    HealthMessage: _handle_health,
    ContextMessage: _handle_context,
    PromptMessage: _handle_prompt,
    UnknownKindMessage: _handle_unknown,
}


def dispatch(msg: Message, host: HostHandle) -> Response:
    """Run the side effect for *msg* and return its single response."""
    return _HANDLERS[type(msg)](msg, host)


def respond_to_frame(frame: bytes, host: HostHandle) -> Response:
    """Validate and dispatch one raw frame. Invalid frames never touch the host."""
    try:
        msg = validate(frame)
    except MessageError as e:
        logger.warning("Rejecting frame (%s): %s", e.reason, e.detail or e.reason)
        return ErrorResponse(error=e.reason)
    return dispatch(msg, host)
