import io
import re
import time
from typing import BinaryIO, Dict, Any, Type


class FilterError(Exception):
    pass


class ResponseFilter:
    """Base class for content filters: takes a binary stream, returns one."""

    name = "filter"

    def filter(self, stream: BinaryIO) -> BinaryIO:
        raise NotImplementedError

    @classmethod
    def from_config(cls, options: Dict[str, Any]) -> 'ResponseFilter':
        return cls(**options)

    def __repr__(self):
        return f"<{self.__class__.__name__}>"


class ReplaceFilter(ResponseFilter):
    name = "replace"

    def __init__(self, pattern: str, replacement: str = ""):
        try:
            self.pattern = re.compile(pattern.encode('utf-8'))
        except re.error as e:
            raise FilterError(f"Invalid pattern {pattern!r}: {e}")
        self.replacement = replacement.encode('utf-8')

    def filter(self, stream: BinaryIO) -> BinaryIO:
        try:
            data = self.pattern.sub(self.replacement, stream.read())
        except re.error as e:
            raise FilterError(f"Replace failed: {e}")
        return io.BytesIO(data)


class TimestampFilter(ResponseFilter):
    """Puts the current time in place of a placeholder on every render."""

    name = "timestamp"

    def __init__(self, placeholder: str = "{{timestamp}}", format: str = "%Y-%m-%dT%H:%M:%S"):
        self.placeholder = placeholder.encode('utf-8')
        self.format = format

    def filter(self, stream: BinaryIO) -> BinaryIO:
        try:
            now = time.strftime(self.format).encode('utf-8')
        except ValueError as e:
            raise FilterError(f"Invalid timestamp format {self.format!r}: {e}")
        return io.BytesIO(stream.read().replace(self.placeholder, now))


class UpperCaseFilter(ResponseFilter):
    name = "upper"

    def filter(self, stream: BinaryIO) -> BinaryIO:
        return io.BytesIO(stream.read().upper())


FILTER_TYPES: Dict[str, Type[ResponseFilter]] = {
    f.name: f for f in (ReplaceFilter, TimestampFilter, UpperCaseFilter)
}


def build_filter(options: Dict[str, Any]) -> ResponseFilter:
    if not isinstance(options, dict):
        raise FilterError(f"Filter options must be an object, got {options!r}")
    options = dict(options)
    filter_type = options.pop("type", None)
    if not isinstance(filter_type, str) or filter_type not in FILTER_TYPES:
        raise FilterError(f"Unknown filter type: {filter_type}")
    try:
        return FILTER_TYPES[filter_type].from_config(options)
    except (TypeError, AttributeError) as e:
        raise FilterError(f"Bad options for filter '{filter_type}': {e}")
