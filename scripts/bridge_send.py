#!/usr/bin/env python3
"""
Send one command to the bridge of a running session.

Usage:
    python scripts/bridge_send.py health
    python scripts/bridge_send.py context --file a.py --filetype python < a.py
    python scripts/bridge_send.py prompt --prompt "explain" --text "x = 1"
    python scripts/bridge_send.py --cwd /path/to/project health

Prints the JSON response. Exits 1 on an error response, 2 if no bridge
is listening.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Allow running from a checkout without installing
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bridge.client import DEFAULT_TIMEOUT, build_payload, send_message  # noqa: E402
from bridge.errors import BridgeUnavailable  # noqa: E402
from bridge.protocol_constants import MSG_CONTEXT, MSG_HEALTH, MSG_PROMPT  # noqa: E402


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Send a command to the editor bridge")
    parser.add_argument("--cwd", help="Working directory of the target session (default: current)")
    parser.add_argument("--socket", help="Explicit socket path, overrides --cwd")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    sub = parser.add_subparsers(dest="kind", required=True)

    sub.add_parser(MSG_HEALTH, help="Check that the bridge is alive")
    for kind, help_text in ((MSG_CONTEXT, "Add text as context for the next turn"),
                            (MSG_PROMPT, "Queue text as a follow-up prompt")):
        p = sub.add_parser(kind, help=help_text)
        p.add_argument("--text", help="Body text (default: read stdin)")
        p.add_argument("--file", help="Originating file label")
        p.add_argument("--filetype", help="Language tag for the code fence")
        if kind == MSG_PROMPT:
            p.add_argument("--prompt", help="Instruction placed before the code block")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    if args.kind == MSG_HEALTH:
        payload = build_payload(MSG_HEALTH)
    else:
        text = args.text if args.text is not None else sys.stdin.read()
        payload = build_payload(
            args.kind,
            text=text,
            file=args.file,
            filetype=args.filetype,
            prompt=getattr(args, "prompt", None),
        )

    try:
        response = asyncio.run(
            send_message(payload, cwd=args.cwd, socket_path=args.socket, timeout=args.timeout)
        )
    except BridgeUnavailable as e:
        print(str(e), file=sys.stderr)
        return 2
    except asyncio.TimeoutError:
        print(f"Bridge did not answer within {args.timeout}s", file=sys.stderr)
        return 2

    print(json.dumps(response))
    return 1 if "error" in response else 0


if __name__ == "__main__":
    sys.exit(main())
