import io
import logging
from typing import BinaryIO, Iterable, Optional, Tuple, Union

from mocksy.core.content import ContentSource, read_stream
from mocksy.core.filters import FilterError, ResponseFilter

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"


class Response:
    """
    One configured mock response.

    Content is materialized once and then run through the filters on every
    render(), so filters that produce time-dependent output stay fresh.
    content_type and delay are expected to be set before serving traffic.
    """

    def __init__(self, id: str, content: Union[str, bytes, BinaryIO],
                 filters: Optional[Iterable[ResponseFilter]] = None,
                 content_type: str = DEFAULT_CONTENT_TYPE, delay: int = 0):
        if not id:
            raise ValueError("Response must have an id value")
        if content is None:
            raise ValueError("Response must have a content value")

        self._id = id
        self._content = ContentSource(content)
        self._filters: Tuple[ResponseFilter, ...] = tuple(filters or ())
        self.content_type = content_type
        self.delay = delay

    @property
    def id(self) -> str:
        return self._id

    @property
    def filters(self) -> Tuple[ResponseFilter, ...]:
        return self._filters

    @property
    def delay(self) -> int:
        """Delay in milliseconds the server waits before answering."""
        return self._delay

    @delay.setter
    def delay(self, value: int):
        if value < 0:
            raise ValueError(f"Delay must not be negative, got {value}")
        self._delay = int(value)

    def render(self, apply_filters: bool = True) -> bytes:
        data = self._content.materialize()
        if not apply_filters:
            return data

        stream = self._filtered_stream(io.BytesIO(data))
        try:
            return read_stream(stream)
        finally:
            stream.close()

    def render_as_text(self, apply_filters: bool = False) -> str:
        try:
            return self.render(apply_filters).decode('utf-8', errors='replace')
        except (FilterError, OSError) as e:
            logger.error(f"Error getting response data for '{self._id}': {e}")
            return str(e)

    def _filtered_stream(self, stream: BinaryIO) -> BinaryIO:
        # фильтры по порядку объявления: первый получает исходные данные
        for response_filter in self._filters:
            stream = response_filter.filter(stream)
        return stream

    def close(self):
        self._content.close()

    def __str__(self):
        return self.render_as_text(False)

    def __repr__(self):
        return f"<Response {self._id} {self.content_type}>"
