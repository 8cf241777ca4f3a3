from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from webchain.core.errors import ChainError, element_summary


@dataclass(slots=True)
class FailureRecord:
    stage: str
    call_site: str
    element: str
    cause_type: str
    message: str
    url: str = ""
    timestamp: str = ""
    sub_errors: int = 0
    artifact_paths: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_error(cls, error: ChainError, **extra: Any) -> FailureRecord:
        return cls(
            stage=error.stage,
            call_site=error.call_site,
            element=element_summary(error.element),
            cause_type=type(error.cause).__name__,
            message=str(error),
            sub_errors=len(getattr(error.cause, "errors", ())),
            **extra,
        )

    def to_payload(self) -> dict[str, Any]:
        return asdict(self)
