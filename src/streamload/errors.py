"""Error taxonomy for a dataset ingestion test run.

Every step of a run raises its own error type so the caller can tell an
integrity violation apart from a transport or query failure. Each class
carries the process exit status the CLI uses for it.
"""


class StreamLoadTestError(Exception):
    """Base class for all run failures."""

    exit_code = 1


class FetchError(StreamLoadTestError):
    """Dataset could not be downloaded or stored in the cache."""

    exit_code = 3


class IntegrityError(StreamLoadTestError):
    """Cached dataset digest does not match the expected value."""

    exit_code = 4


class SchemaError(StreamLoadTestError):
    """The SQL endpoint rejected the table DDL."""

    exit_code = 5


class IngestionError(StreamLoadTestError):
    """Streaming load upload failed or was rejected."""

    exit_code = 6


class QueryError(StreamLoadTestError):
    """A verification query failed."""

    exit_code = 7


class TeardownError(StreamLoadTestError):
    """Dropping the test table failed. Reported, never escalated."""

    exit_code = 8


class SQLClientError(Exception):
    """Raised by DatabaseService backends when a statement fails."""
