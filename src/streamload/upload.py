"""Streaming load upload client."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import requests

from streamload.config import IngestionRequest
from streamload.errors import IngestionError

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "upload"
SUCCESS_STATE = "SUCCESS"


@dataclass(frozen=True)
class LoadResult:
    status_code: int
    state: str | None = None
    rows: int | None = None
    error: str | None = None
    body: Any = None

    @property
    def ok(self) -> bool:
        if not 200 <= self.status_code < 300:
            return False
        if self.error:
            return False
        if self.state is None:
            return True
        return isinstance(self.state, str) and self.state.upper() == SUCCESS_STATE


def _row_count(value) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric row count in load reply: %r", value)
        return None


def parse_load_response(resp: requests.Response) -> LoadResult:
    """Build a LoadResult from the endpoint's reply.

    The endpoint answers with JSON like
    {"id": ..., "state": "SUCCESS", "stats": {"read_rows": 10, "read_bytes": 512}, "error": null}.
    Older servers report `rows` instead of `read_rows`. A row count that is
    not an integer is dropped. Anything that is not a JSON object is kept
    verbatim in `body`.
    """
    try:
        payload = resp.json()
    except ValueError:
        return LoadResult(status_code=resp.status_code, body=resp.text)
    if not isinstance(payload, dict):
        return LoadResult(status_code=resp.status_code, body=payload)

    stats = payload.get("stats") or {}
    rows = None
    if isinstance(stats, dict):
        rows = _row_count(stats.get("read_rows", stats.get("rows")))
    error = payload.get("error")
    return LoadResult(
        status_code=resp.status_code,
        state=payload.get("state"),
        rows=rows,
        error=str(error) if error else None,
        body=payload,
    )


class StreamingLoadClient(ABC):
    """Abstract interface for uploading a file to a streaming load endpoint."""

    @abstractmethod
    def upload(self, request: IngestionRequest, timeout: float) -> LoadResult:
        """Send the request's file with its directive headers.

        Raises:
            IngestionError: on transport failure, or on a rejected load when
                the client checks responses.
        """


class HTTPStreamingLoadClient(StreamingLoadClient):
    """PUT the file as multipart form data with the directives as headers.

    With strict=False a rejected load is only logged, matching a
    fire-and-forget upload; transport failures still raise.
    """

    def __init__(self, auth: tuple[str, str] | None = None, strict: bool = True, session=None):
        self._auth = auth
        self._strict = strict
        self._session = session or requests.Session()

    def upload(self, request: IngestionRequest, timeout: float) -> LoadResult:
        logger.info("PUT %s (%s)", request.endpoint, request.headers.get("insert_sql"))
        try:
            with open(request.file_path, "rb") as fh:
                resp = self._session.put(
                    request.endpoint,
                    headers=request.headers,
                    files={UPLOAD_FIELD: (request.file_path.name, fh)},
                    auth=self._auth,
                    timeout=timeout,
                )
        except requests.RequestException as e:
            raise IngestionError(f"PUT {request.endpoint} failed: {e}") from e
        except OSError as e:
            raise IngestionError(f"cannot read {request.file_path}: {e}") from e

        result = parse_load_response(resp)
        if result.ok:
            logger.info("Streaming load accepted: %s rows", result.rows)
            return result

        message = (
            f"streaming load rejected: HTTP {result.status_code}, "
            f"state={result.state}, error={result.error or result.body}"
        )
        if self._strict:
            raise IngestionError(message)
        logger.warning("%s (ignored, permissive mode)", message)
        return result
