"""Minimal client for the bridge socket, mirroring what an editor plugin sends."""

import asyncio
import json
import logging
import os

from .address import derive_socket_path
from .errors import BridgeUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


def build_payload(
    kind: str,
    *,
    text: str | None = None,
    file: str | None = None,
    filetype: str | None = None,
    prompt: str | None = None,
) -> dict:
    """Assemble a request, leaving out fields that are not set."""
    payload = {"type": kind}
    for name, value in (("text", text), ("file", file), ("filetype", filetype), ("prompt", prompt)):
        if value is not None:
            payload[name] = value
    return payload


async def send_message(
    payload: dict,
    *,
    cwd: str | None = None,
    socket_path: str | None = None,
    socket_dir: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict:
    """Send one request and return the bridge's parsed response.

    The socket is located from *socket_path* if given, otherwise derived
    from *cwd* (default: the current directory).
    """
    path = socket_path or derive_socket_path(cwd or os.getcwd(), socket_dir)
    try:
        reader, writer = await asyncio.wait_for(asyncio.open_unix_connection(path), timeout)
    except (FileNotFoundError, ConnectionRefusedError) as e:
        raise BridgeUnavailable(path, str(e)) from e

    try:
        writer.write((json.dumps(payload, ensure_ascii=False) + "\n").encode("utf-8"))
        await writer.drain()
        line = await asyncio.wait_for(reader.readline(), timeout)
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    if not line:
        raise BridgeUnavailable(path, "connection closed without a response")
    logger.debug("Bridge %s answered %s", path, line.rstrip())
    return json.loads(line)
