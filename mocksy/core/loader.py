import os
import json
import logging
import mimetypes
from typing import Dict, List, Optional

from mocksy.core.filters import FilterError, build_filter
from mocksy.core.response import Response, DEFAULT_CONTENT_TYPE

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta.json"


class ResponseLoader:
    """
    Builds Response objects from a directory tree.

    Each file is one response, its id is the relative path without the
    extension. An optional "<file>.meta.json" next to it may set
    content_type, delay and filters.
    """

    def __init__(self, responses_dir: str = "responses"):
        self.responses_dir = responses_dir
        self.responses: Dict[str, Response] = {}
        self._load_responses()

    def _load_responses(self):
        responses = {}
        if not os.path.exists(self.responses_dir):
            os.makedirs(self.responses_dir, exist_ok=True)

        for root, _, files in os.walk(self.responses_dir):
            for file in sorted(files):
                if file.endswith(META_SUFFIX):
                    continue

                path = os.path.join(root, file)
                response_id = self._response_id(path)
                if response_id in responses:
                    logger.warning(f"Duplicate response id '{response_id}', skipping {path}")
                    continue

                try:
                    responses[response_id] = self._load_response(response_id, path)
                except (OSError, ValueError, FilterError) as e:
                    logger.error(f"Failed to load response {path}: {e}")

        # подменяем целиком, чтобы запросы не видели полузагруженный набор
        previous, self.responses = self.responses, responses
        for response in previous.values():
            response.close()
        logger.info(f"Loaded {len(responses)} responses from {self.responses_dir}")

    def _response_id(self, path: str) -> str:
        rel_path = os.path.relpath(path, self.responses_dir)
        return os.path.splitext(rel_path)[0].replace(os.sep, "/")

    def _load_response(self, response_id: str, path: str) -> Response:
        meta = self._read_meta(path)

        content_type = meta.get("content_type")
        if not content_type:
            content_type = mimetypes.guess_type(path)[0] or DEFAULT_CONTENT_TYPE

        filter_options = meta.get("filters", [])
        if not isinstance(filter_options, list):
            raise ValueError("'filters' must be a list")
        filters = [build_filter(options) for options in filter_options]

        delay = meta.get("delay", 0)
        if isinstance(delay, bool) or not isinstance(delay, int):
            raise ValueError(f"'delay' must be an integer, got {delay!r}")

        # файл читается при первом запросе, потом закрывается
        stream = open(path, "rb")
        try:
            return Response(
                response_id, stream, filters,
                content_type=content_type,
                delay=delay
            )
        except Exception:
            stream.close()
            raise

    def _read_meta(self, path: str) -> dict:
        meta_path = path + META_SUFFIX
        if not os.path.exists(meta_path):
            meta_path = os.path.splitext(path)[0] + META_SUFFIX
            if not os.path.exists(meta_path):
                return {}

        with open(meta_path, "r") as f:
            meta = json.load(f)
        if not isinstance(meta, dict):
            raise ValueError(f"{meta_path} must contain a JSON object")
        return meta

    def reload(self):
        logger.info("Reload responses...")
        self._load_responses()

    def get(self, response_id: str) -> Optional[Response]:
        return self.responses.get(response_id)

    def ids(self) -> List[str]:
        return sorted(self.responses)

    def __len__(self):
        return len(self.responses)
