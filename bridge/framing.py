"""Newline framing for the bridge byte stream.

One ``FrameDecoder`` lives per connection. Bytes go in through ``feed()``
in whatever chunks the transport delivers; complete frames come out in
arrival order, with the delimiter stripped.
"""

from collections.abc import Iterator

from .errors import FrameTooLarge
from .protocol_constants import FRAME_DELIMITER


class FrameDecoder:
    def __init__(self, max_frame_bytes: int = 0):
        # 0 means unbounded
        self.max_frame_bytes = max_frame_bytes
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete frame."""
        return len(self._buffer)

    def feed(self, data: bytes) -> Iterator[bytes]:
        """Buffer *data* and return an iterator over the frames it completes.

        The bytes are buffered immediately; frames are cut lazily as the
        iterator is consumed. A trailing partial frame stays buffered for
        the next call.
        """
        self._buffer.extend(data)
        return self._drain()

    def _drain(self) -> Iterator[bytes]:
        while True:
            end = self._buffer.find(FRAME_DELIMITER)
            if end == -1:
                self._check_size(len(self._buffer))
                return
            self._check_size(end)
            frame = bytes(self._buffer[:end])
            del self._buffer[: end + len(FRAME_DELIMITER)]
            yield frame

    def _check_size(self, size: int) -> None:
        if self.max_frame_bytes and size > self.max_frame_bytes:
            self._buffer.clear()
            raise FrameTooLarge(f"frame exceeds {self.max_frame_bytes} bytes")
