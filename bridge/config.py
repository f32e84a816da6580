"""Environment-driven settings for the bridge.

Values are read once at import time. ``BridgeServer`` accepts keyword
overrides for everything that matters at runtime, so tests never need to
touch the environment.
"""

import logging
import os

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


# --- Socket location ---

# Editor plugins compute the same path independently, so the default must
# stay /tmp rather than tempfile.gettempdir().
SOCKET_DIR = os.environ.get("PI_BRIDGE_SOCKET_DIR") or "/tmp"

# --- Connection limits (0 disables the limit) ---

MAX_FRAME_BYTES = _env_int("PI_BRIDGE_MAX_FRAME_BYTES", 0)
IDLE_TIMEOUT_SECONDS = _env_float("PI_BRIDGE_IDLE_TIMEOUT", 0.0)

# --- Standalone runner ---

LOG_LEVEL = os.environ.get("PI_BRIDGE_LOG_LEVEL", "INFO").upper()
CWD_OVERRIDE = os.environ.get("PI_BRIDGE_CWD") or None
