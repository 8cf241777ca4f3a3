from __future__ import annotations


class ChainFailure(RuntimeError):
    """Base class for failures recorded as the cause of a chain error."""


class SelectionError(ChainFailure):
    """Raised when a selector yields the wrong cardinality or lookup fails."""


class ActionError(ChainFailure):
    """Raised when navigation or an element interaction fails."""


class MatchError(ChainFailure):
    """Raised when an observed value does not satisfy a matcher."""


class UrlParseError(ChainFailure):
    """Raised when the driver reports a URL that cannot be parsed."""


class DiagnosticsError(ChainFailure):
    """Raised when a screenshot or debug capture cannot be taken."""


class AggregateError(ChainFailure):
    """Every element of an Any selection failed."""

    def __init__(self, errors) -> None:
        self.errors = tuple(errors)
        super().__init__(self.errors)

    def __str__(self) -> str:
        lines = ["None of the elements passed:"]
        lines.extend(f"\t{error}" for error in self.errors)
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.errors)


def wrap(failure_type: type[ChainFailure], message: str, exc: BaseException) -> ChainFailure:
    """Builds a failure of ``failure_type`` chained to the driver exception ``exc``."""

    failure = failure_type(message)
    failure.__cause__ = exc
    return failure
