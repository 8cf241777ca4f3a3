from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ChainSettings(BaseModel):
    poll_interval_seconds: float = Field(default=0.1, gt=0)
    poll_timeout_seconds: float = Field(default=60.0, ge=0)


class ArtifactSettings(BaseModel):
    root: str = "artifacts"


class BrowserSettings(BaseModel):
    name: str = "chrome"
    headless: bool = True
    page_load_timeout_seconds: int = 10

    @field_validator("name")
    @classmethod
    def validate_browser(cls, value: str) -> str:
        normalized = value.lower()
        if normalized not in {"chrome", "firefox"}:
            raise ValueError(f"Unsupported browser: {value}")
        return normalized


class SuiteConfig(BaseModel):
    chain: ChainSettings = Field(default_factory=ChainSettings)
    artifacts: ArtifactSettings = Field(default_factory=ArtifactSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
