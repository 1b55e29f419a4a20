#!/usr/bin/env python3
"""
Lightweight console client for the Essay Question API streaming endpoints.

Usage:
    python console_client.py <route> <question> <essay-file> [model]
    python console_client.py task-response "Some people think..." essay.txt gpt-4o-mini

The caller's OpenAI key is read from OPENAI_API_KEY and sent in the TOKEN header.
"""

import json
import os
import sys
import uuid
from pathlib import Path

import requests

API_URL = os.getenv("ESSAY_API_URL", "http://localhost:8000")


def stream_essay(
    route: str,
    question: str,
    essay: str,
    token: str,
    model: str = "gpt-4o-mini",
    request_id: str | None = None,
) -> None:
    """Stream an essay route's answer and render it to the console."""

    headers = {
        "Content-Type": "application/json",
        "Accept": "text/event-stream",
        "TOKEN": token,
        "X-Request-ID": request_id or f"req_{int(uuid.uuid4().int % 1000000000)}",
    }

    payload = {
        "model": model,
        "stream": True,
        "messages": [{"question": question, "essay": essay}],
    }

    print(f"\n{'='*80}")
    print(f"ROUTE: /{route}  ({len(essay.split())} words)")
    print(f"REQUEST ID: {headers['X-Request-ID']}")
    print(f"{'='*80}\n")

    try:
        with requests.post(
            f"{API_URL}/{route}", headers=headers, json=payload, stream=True, timeout=120
        ) as response:
            if response.status_code != 200:
                print(f"\n❌ HTTP {response.status_code}: {response.text}", file=sys.stderr)
                return

            for line in response.iter_lines():
                if not line:
                    continue
                decoded_line = line.decode("utf-8")
                if not decoded_line.startswith("data:"):
                    continue

                try:
                    event_json = json.loads(decoded_line[5:].strip())
                except json.JSONDecodeError as e:
                    print(f"\n❌ JSON Parse Error: {e}", file=sys.stderr)
                    continue

                if "error" in event_json:
                    print(f"\n❌ ERROR: {event_json['error']['message']}", file=sys.stderr)
                    return

                for choice in event_json.get("choices") or []:
                    content = (choice.get("delta") or {}).get("content")
                    if content:
                        print(content, end="", flush=True)
                    if choice.get("finish_reason"):
                        print(f"\n\n{'='*80}")
                        print(f"Finish: {choice['finish_reason']}")
                        print(f"{'='*80}\n")

    except requests.exceptions.RequestException as e:
        print(f"\n❌ Request failed: {e}", file=sys.stderr)


if __name__ == "__main__":
    if len(sys.argv) < 4:
        print("Usage: python console_client.py <route> <question> <essay-file> [model]")
        print("\nExamples:")
        print('  python console_client.py ask "What is my weakest paragraph?" essay.txt')
        print('  python console_client.py task-response "Some people think..." essay.txt gpt-4o')
        sys.exit(1)

    token = os.getenv("OPENAI_API_KEY")
    if not token:
        print("ERROR: OPENAI_API_KEY environment variable not set", file=sys.stderr)
        sys.exit(1)

    route, question, essay_file = sys.argv[1].lstrip("/"), sys.argv[2], sys.argv[3]
    model = sys.argv[4] if len(sys.argv) > 4 else "gpt-4o-mini"

    stream_essay(route, question, Path(essay_file).read_text(encoding="utf-8"), token, model)
