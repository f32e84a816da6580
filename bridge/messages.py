"""Request and response models for the bridge protocol.

A raw frame is turned into exactly one of the ``Message`` variants by
``validate()``, or rejected with a ``MessageError``. Text presence is
checked before the kind is checked: an unknown kind that carries text
validates to ``UnknownKindMessage`` and is rejected later by the
dispatcher, while an unknown kind without text fails here as missing
text. Editor clients rely on those exact error strings.
"""

import json
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict

from .errors import MalformedPayload, MissingText
from .protocol_constants import MSG_CONTEXT, MSG_HEALTH, MSG_PROMPT

_OPTIONAL_FIELDS = ("text", "file", "filetype", "prompt")


# --- Requests ---

class _MessageBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str | None = None
    file: str | None = None
    filetype: str | None = None
    prompt: str | None = None


class HealthMessage(_MessageBase):
    kind: Literal["health"] = MSG_HEALTH


class ContextMessage(_MessageBase):
    kind: Literal["context"] = MSG_CONTEXT
    text: str


class PromptMessage(_MessageBase):
    kind: Literal["prompt"] = MSG_PROMPT
    text: str


class UnknownKindMessage(_MessageBase):
    """A message with text whose ``type`` is absent or not recognized."""

    kind: str | None = None


Message = Union[HealthMessage, ContextMessage, PromptMessage, UnknownKindMessage]


# --- Responses ---

class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    cwd: str


class OkResponse(BaseModel):
    ok: Literal[True] = True


class ErrorResponse(BaseModel):
    error: str


Response = Union[HealthResponse, OkResponse, ErrorResponse]


def encode_response(response: Response) -> bytes:
    """Serialize a response as one compact JSON line."""
    return (response.model_dump_json() + "\n").encode("utf-8")


# --- Validation ---

def _optional_str(value) -> str | None:
    """Empty strings and non-string values count as absent."""
    if isinstance(value, str) and value:
        return value
    return None


def validate(frame: bytes) -> Message:
    """Parse one frame into a ``Message`` variant.

    Raises ``MalformedPayload`` when the frame is not a JSON object and
    ``MissingText`` when a non-health message lacks a non-empty ``text``.
    """
    try:
        payload = json.loads(frame.decode("utf-8", errors="replace"))
    except (ValueError, RecursionError) as e:
        raise MalformedPayload(str(e)) from e
    if not isinstance(payload, dict):
        raise MalformedPayload(f"expected a JSON object, got {type(payload).__name__}")

    kind = payload.get("type")
    fields = {name: _optional_str(payload.get(name)) for name in _OPTIONAL_FIELDS}

    if kind == MSG_HEALTH:
        return HealthMessage(**fields)

    if fields["text"] is None:
        raise MissingText()

    if kind == MSG_CONTEXT:
        return ContextMessage(**fields)
    if kind == MSG_PROMPT:
        return PromptMessage(**fields)

    raw_kind = kind if isinstance(kind, str) or kind is None else json.dumps(kind)
    return UnknownKindMessage(kind=raw_kind, **fields)
