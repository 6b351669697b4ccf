"""
Event-stream (text/event-stream) wire encoding.

A frame is a run of "field: value" lines terminated by a blank line:

    data: first line
    data: second line
    <blank>

Browsers' EventSource joins the data fields back with "\\n".
"""

import re
from typing import Dict, Union


PING_FRAME = "event: ping\ndata: ping\n\n"

STREAM_CONTENT_TYPE = "text/event-stream; charset=UTF-8"

# The event-stream line terminators. Nothing else ends a line.
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def format_message(body: Union[str, bytes]) -> str:
    """
    Frame a posted chat message as one event.

    Bytes are decoded as UTF-8 with invalid sequences replaced, never
    rejected. Each line becomes one data field. Lines end at CRLF, LF or
    a lone CR only; form feeds and Unicode separators stay in the text.

        format_message("hello\\nworld") == "data: hello\\ndata: world\\n\\n"
        format_message("") == "\\n"
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")

    lines = _LINE_BREAK.split(body)
    if lines[-1] == "":
        lines.pop()  # Trailing terminator, or an empty body

    fields = "".join(f"data: {line}\n" for line in lines)
    return f"{fields}\n"


def stream_headers(server_name: str) -> Dict[str, str]:
    """Headers for a 200 event-stream response (GET and HEAD /chat)."""
    return {
        "Server": server_name,
        "Cache-Control": "no-store",
        "Content-Type": STREAM_CONTENT_TYPE,
    }
