import logging
import threading
from enum import Enum
from typing import BinaryIO, Optional, Union

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 10 * 1024 # 10 кб на чтение


class ContentState(Enum):
    UNMATERIALIZED = "UNMATERIALIZED"
    MATERIALIZING = "MATERIALIZING"
    MATERIALIZED = "MATERIALIZED"
    FAILED = "FAILED"


def read_stream(stream: BinaryIO, chunk_size: int = READ_CHUNK_SIZE) -> bytes:
    output = bytearray()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        output += chunk
    return bytes(output)


class ContentSource:
    """
    Content of a mock response: a literal payload or a one-shot stream.

    The stream is drained on the first materialize() call and dropped right
    after, so it is never read twice. All callers get the same bytes.
    """

    def __init__(self, content: Union[str, bytes, bytearray, BinaryIO, None]):
        if content is None:
            raise ValueError("Content source must have a content value")

        self._lock = threading.Lock()
        self._data: Optional[bytes] = None
        self._stream: Optional[BinaryIO] = None

        if isinstance(content, str):
            self._data = content.encode('utf-8')
            self._state = ContentState.MATERIALIZED
        elif isinstance(content, (bytes, bytearray)):
            self._data = bytes(content)
            self._state = ContentState.MATERIALIZED
        else:
            self._stream = content
            self._state = ContentState.UNMATERIALIZED

    @property
    def state(self) -> ContentState:
        return self._state

    @property
    def failed(self) -> bool:
        return self._state == ContentState.FAILED

    def materialize(self) -> bytes:
        if self._state in (ContentState.MATERIALIZED, ContentState.FAILED):
            return self._data or b""

        with self._lock:
            # пока ждали лок, мог прочитать другой поток
            if self._state == ContentState.UNMATERIALIZED:
                self._drain()

        return self._data or b""

    def _drain(self):
        self._state = ContentState.MATERIALIZING
        stream = self._stream
        try:
            data = read_stream(stream)
        except (OSError, ValueError) as e:
            # ValueError: файл уже закрыт
            logger.error(f"Error reading response stream: {e}")
            self._state = ContentState.FAILED
        else:
            self._data = data
            self._state = ContentState.MATERIALIZED
            logger.debug(f"Materialized {len(data)} bytes of response content")
        finally:
            if self._state == ContentState.MATERIALIZING:
                logger.error("Response stream drain aborted, content marked as failed")
                self._state = ContentState.FAILED
            self._stream = None
            self._close(stream)

    def close(self):
        """Release a stream that was never materialized."""
        with self._lock:
            if self._state != ContentState.UNMATERIALIZED:
                return
            stream = self._stream
            self._stream = None
            self._state = ContentState.FAILED
            logger.debug("Response stream closed before materialization")
            self._close(stream)

    @staticmethod
    def _close(stream: BinaryIO):
        try:
            stream.close()
        except OSError as e:
            logger.warning(f"Failed to close response stream: {e}")

    def __repr__(self):
        return f"<ContentSource {self._state.value}>"
