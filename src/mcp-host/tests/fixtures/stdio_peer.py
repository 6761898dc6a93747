"""Minimal MCP server speaking newline-delimited JSON-RPC on stdio.

Spawned by the stdio transport tests with the current interpreter. Only the
standard library is used so the script runs outside the test's import path.

Flags:
    --banner   Print a non JSON line before serving
    --silent   Never answer initialize
"""

import json
import os
import sys

TOOLS = [{"name": "echo", "description": "Echo the text argument", "inputSchema": {"type": "object"}}]


def answer(message: dict) -> dict | None:
    method = message.get("method")
    if "id" not in message or method is None:
        return None
    params = message.get("params") or {}

    if method == "initialize":
        if "--silent" in sys.argv:
            return None
        result = {
            "protocolVersion": params.get("protocolVersion", "2025-06-18"),
            "capabilities": {"tools": {}},
            "serverInfo": {"name": "stdio-peer", "version": "0.1.0"},
        }
    elif method == "ping":
        result = {}
    elif method == "tools/list":
        result = {"tools": TOOLS}
    elif method == "tools/call" and params.get("name") == "echo":
        result = {"content": [{"type": "text", "text": str(params.get("arguments", {}).get("text", ""))}]}
    elif method == "tools/call" and params.get("name") == "env":
        name = params.get("arguments", {}).get("name", "")
        result = {"content": [{"type": "text", "text": os.environ.get(name, "")}]}
    elif method == "tools/call" and params.get("name") == "exit":
        sys.exit(3)
    else:
        return {"jsonrpc": "2.0", "id": message["id"], "error": {"code": -32601, "message": f"Method not found: {method}"}}
    return {"jsonrpc": "2.0", "id": message["id"], "result": result}


def main() -> None:
    if "--banner" in sys.argv:
        print("stdio-peer starting", flush=True)
    print("stdio-peer ready", file=sys.stderr, flush=True)

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        reply = answer(json.loads(line))
        if reply is not None:
            sys.stdout.write(json.dumps(reply) + "\n")
            sys.stdout.flush()


if __name__ == "__main__":
    main()
