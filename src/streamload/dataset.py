"""Reference dataset acquisition and integrity checking."""

import hashlib
import logging
import os
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path

import requests

from streamload.config import DatasetSpec
from streamload.errors import FetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
CACHE_FILE_MODE = 0o644


class DatasetFetcher(ABC):
    """Abstract interface for downloading a dataset file."""

    @abstractmethod
    def fetch(self, url: str, dest: Path, timeout: float) -> None:
        """Download `url` and write its bytes to `dest`.

        Args:
            url: Remote location of the dataset.
            dest: Local file to write. The caller owns its lifecycle.
            timeout: Seconds allowed per network operation.

        Raises:
            FetchError: on network or storage failure.
        """


class HTTPDatasetFetcher(DatasetFetcher):
    """Streamed HTTP GET with exponential backoff retry."""

    def __init__(self, max_retries: int = 3, base_delay: float = 1.0, session=None):
        self._max_retries = max_retries
        self._base_delay = base_delay
        self._session = session or requests.Session()

    def fetch(self, url: str, dest: Path, timeout: float) -> None:
        for attempt in range(self._max_retries):
            try:
                with self._session.get(url, stream=True, timeout=timeout) as resp:
                    resp.raise_for_status()
                    with open(dest, "wb") as f:
                        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                            f.write(chunk)
                return
            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if status is not None and status < 500:
                    raise FetchError(f"GET {url} returned {status}") from e
                error: Exception = e
            except requests.RequestException as e:
                error = e
            except OSError as e:
                raise FetchError(f"cannot write {dest}: {e}") from e

            if attempt < self._max_retries - 1:
                delay = self._base_delay * (2**attempt)
                logger.warning(
                    "Download attempt %d failed: %s. Retrying in %.1fs...",
                    attempt + 1,
                    error,
                    delay,
                )
                time.sleep(delay)
            else:
                raise FetchError(f"GET {url} failed: {error}") from error


def ensure_dataset_cached(
    spec: DatasetSpec, fetcher: DatasetFetcher, timeout: float = 300.0
) -> bool:
    """Download the dataset into its cache path unless it is already there.

    The download goes to a temporary file in the cache directory which is
    renamed into place only once complete, so concurrent runs never see a
    partial file. Returns True if a download happened.
    """
    cache_path = Path(spec.cache_path)
    if cache_path.exists():
        logger.info("Dataset already cached at %s", cache_path)
        return False

    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{cache_path.name}.", suffix=".part", dir=cache_path.parent
        )
        os.close(fd)
    except OSError as e:
        raise FetchError(f"cannot prepare cache directory {cache_path.parent}: {e}") from e

    tmp_path = Path(tmp_name)
    try:
        logger.info("Downloading %s -> %s", spec.url, cache_path)
        fetcher.fetch(spec.url, tmp_path, timeout)
        # Shared cache file, readable by every user (mkstemp creates it 0600).
        os.chmod(tmp_path, CACHE_FILE_MODE)
        os.replace(tmp_path, cache_path)
    except OSError as e:
        raise FetchError(f"cannot store dataset at {cache_path}: {e}") from e
    finally:
        tmp_path.unlink(missing_ok=True)

    logger.info("Cached %d bytes at %s", cache_path.stat().st_size, cache_path)
    return True


def file_digest(path: str | Path, algorithm: str = "sha256") -> str:
    """Hex digest of a file, read in chunks."""
    h = hashlib.new(algorithm)
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_integrity(spec: DatasetSpec) -> bool:
    """Compare the cached file's digest with the expected one, ignoring hex case."""
    try:
        actual = file_digest(spec.cache_path, spec.algorithm)
    except OSError as e:
        raise FetchError(f"cannot read cached dataset {spec.cache_path}: {e}") from e

    matched = actual.lower() == spec.expected_digest.strip().lower()
    if not matched:
        logger.error(
            "%s digest mismatch for %s: expected %s, got %s",
            spec.algorithm,
            spec.cache_path,
            spec.expected_digest,
            actual,
        )
    return matched
