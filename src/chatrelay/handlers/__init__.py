"""
Request handlers for the relay's two paths.

    index.py   IndexHandler - GET/HEAD /
    chat.py    ChatHandler  - HEAD/GET/POST /chat
"""

from .chat import ChatHandler
from .index import IndexHandler

__all__ = [
    "ChatHandler",
    "IndexHandler",
]
