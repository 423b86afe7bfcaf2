"""Error taxonomy.

Input errors describe events that will never succeed (a malformed object
name); dependency errors describe failures of the object source, the
detection capability, or the analytics store. The orchestrator wraps both in
`PipelineError`, tagging the stage that failed.
"""

from __future__ import annotations


class LineAnalyzerError(Exception):
    """Base class for all analyzer errors."""


class ConfigError(LineAnalyzerError):
    """Required configuration is missing or invalid."""

    def __init__(self, missing: list[str] | None = None, message: str | None = None) -> None:
        self.missing = list(missing or [])
        if message is None:
            message = "missing required configuration: " + ", ".join(self.missing)
        super().__init__(message)


class InputError(LineAnalyzerError):
    """The triggering event cannot be processed as given."""


class ParseError(InputError):
    """An object name does not follow `<shopID>_<unixSeconds>.<ext>`."""

    def __init__(self, object_name: str, segment: str, reason: str) -> None:
        self.object_name = object_name
        self.segment = segment
        self.reason = reason
        super().__init__(f"invalid object name {object_name!r}: {segment} {reason}")


class DependencyError(LineAnalyzerError):
    """An external collaborator failed."""


class FetchError(DependencyError):
    """Reading the uploaded object failed."""

    def __init__(self, bucket: str, name: str, cause: BaseException) -> None:
        self.bucket = bucket
        self.name = name
        self.cause = cause
        super().__init__(f"read gs://{bucket}/{name}: {cause}")


class DetectionError(DependencyError):
    """A call to the detection capability failed."""

    def __init__(self, call: str, cause: BaseException) -> None:
        self.call = call
        self.cause = cause
        super().__init__(f"{call}: {cause}")


class StoreError(DependencyError):
    """Appending rows to an analytics table failed."""

    def __init__(self, table: str, cause: BaseException | str) -> None:
        self.table = table
        self.cause = cause
        super().__init__(f"insert into {table}: {cause}")


class PipelineError(LineAnalyzerError):
    """A pipeline stage failed; `cause` holds the original error."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage}: {cause}")

    @property
    def retryable(self) -> bool:
        """Whether redelivering the same event could succeed."""

        return isinstance(self.cause, DependencyError)
