"""Socket address derivation: one deterministic socket path per working directory."""

import hashlib
import os

from . import config
from .protocol_constants import SOCKET_HASH_CHARS, SOCKET_PREFIX, SOCKET_SUFFIX


def cwd_digest(cwd: str) -> str:
    """Return the short hex digest identifying *cwd*."""
    return hashlib.sha256(cwd.encode("utf-8")).hexdigest()[:SOCKET_HASH_CHARS]


def derive_socket_path(cwd: str, socket_dir: str | None = None) -> str:
    """Map a working directory to its bridge socket path.

    The same directory always yields the same path, so editors can
    reconnect without any discovery step.
    """
    directory = socket_dir if socket_dir is not None else config.SOCKET_DIR
    return os.path.join(directory, f"{SOCKET_PREFIX}{cwd_digest(cwd)}{SOCKET_SUFFIX}")
