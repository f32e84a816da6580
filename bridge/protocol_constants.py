"""Bridge wire protocol constants: message types, response fields, error reasons.

Pure data module -- no imports, no logic. Safe to import from any bridge
module without risk of circular dependencies.
"""

# ── Client -> Bridge message types ────────────────────────────────────

MSG_HEALTH = "health"
MSG_CONTEXT = "context"
MSG_PROMPT = "prompt"

# ── Error reasons (exact strings; editor clients match on them) ───────

ERR_INVALID_JSON = "invalid JSON"
ERR_MISSING_TEXT = "missing 'text'"
ERR_UNKNOWN_TYPE = "unknown type"
ERR_FRAME_TOO_LARGE = "frame too large"
ERR_INTERNAL = "internal error"

# ── Host-facing identifiers ───────────────────────────────────────────

STATUS_KEY = "nvim-bridge"
STATUS_TEXT = "bridge:sock"
CONTEXT_CUSTOM_TYPE = "nvim-context"

# ── Socket naming ─────────────────────────────────────────────────────

SOCKET_PREFIX = "pi-bridge-"
SOCKET_SUFFIX = ".sock"
SOCKET_HASH_CHARS = 16

FRAME_DELIMITER = b"\n"
