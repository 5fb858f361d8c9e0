"""
Byte streams and ASGI receive helpers backing the buffered wrappers.
"""

import io
from typing import Any, Optional

from starlette.types import Message, Receive


async def read_body(receive: Receive) -> bytes:
    """Drain every ``http.request`` message and return the whole body."""
    chunks = []
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


def replay_receive(body: bytes, parent: Optional[Receive] = None) -> Receive:
    """Build a receive callable that hands ``body`` out in a single message.

    Once the body has been delivered, further calls wait on ``parent`` (the
    real client channel) so disconnect detection keeps working; without a
    parent they report a disconnect straight away.
    """
    sent = False

    async def receive() -> Message:
        nonlocal sent
        if sent:
            if parent is not None:
                return await parent()
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return receive


class BufferedInputStream(io.BytesIO):
    """Readable stream over an already buffered request body."""

    def __init__(self, body: bytes = b""):
        super().__init__(body)
        self._size = len(body)

    def is_finished(self) -> bool:
        return self.tell() >= self._size

    def is_ready(self) -> bool:
        return True

    def set_read_listener(self, listener: Any) -> None:
        raise NotImplementedError("Not implemented")
