#!/usr/bin/env python
"""
Scripted MCP server used by the test suite.

Speaks line-delimited JSON-RPC on stdin/stdout. Tools:
    echo       returns its arguments as text
    fail       isError result with a message
    fail_bare  isError result without content
    argv       returns the process argv and FAKE_ENGINE_VAR
    crash      exits without answering

Set FAKE_ENGINE_FAIL_INIT=1 to reject the initialize request.
"""

import json
import os
import sys

TOOLS = [
    {"name": "echo", "description": "Echo arguments", "inputSchema": {"type": "object"}},
    {"name": "fail", "description": "Always fails", "inputSchema": {"type": "object"}},
    {"name": "fail_bare", "description": "Fails without content", "inputSchema": {"type": "object"}},
    {"name": "argv", "description": "Show argv", "inputSchema": {"type": "object"}},
    {"name": "crash", "description": "Exit immediately", "inputSchema": {"type": "object"}},
]


def reply(request_id, result=None, error=None):
    message = {"jsonrpc": "2.0", "id": request_id}
    if error is not None:
        message["error"] = error
    else:
        message["result"] = result
    sys.stdout.write(json.dumps(message) + "\n")
    sys.stdout.flush()


def text(value):
    return {"content": [{"type": "text", "text": value}]}


def handle_call(request_id, params):
    name = params.get("name")
    arguments = params.get("arguments")

    if name == "echo":
        reply(request_id, text(json.dumps(arguments, sort_keys=True)))
    elif name == "fail":
        reply(request_id, {"isError": True, "content": [{"type": "text", "text": "boom"}]})
    elif name == "fail_bare":
        reply(request_id, {"isError": True})
    elif name == "argv":
        reply(request_id, {"argv": sys.argv[1:], "var": os.environ.get("FAKE_ENGINE_VAR")})
    elif name == "crash":
        sys.exit(3)
    else:
        reply(request_id, error={"code": -32602, "message": f"Unknown tool: {name}"})


def main():
    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        message = json.loads(line)
        method = message.get("method")
        request_id = message.get("id")

        if request_id is None:
            # Notification
            continue

        if method == "initialize":
            if os.environ.get("FAKE_ENGINE_FAIL_INIT") == "1":
                reply(request_id, error={"code": -32600, "message": "init rejected"})
                continue
            reply(request_id, {
                "protocolVersion": message["params"]["protocolVersion"],
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "fake-engine", "version": "0.1"},
            })
        elif method == "tools/list":
            reply(request_id, {"tools": TOOLS})
        elif method == "tools/call":
            handle_call(request_id, message.get("params") or {})
        else:
            reply(request_id, error={"code": -32601, "message": f"Method not found: {method}"})


if __name__ == "__main__":
    main()
