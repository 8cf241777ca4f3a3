from __future__ import annotations

import re
from datetime import UTC, datetime
from pathlib import Path

from webchain.config.schema import ArtifactSettings


def slugify(label: str) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", label).strip("_").lower()
    return slug or "chain"


class ArtifactManager:
    """Owns the directory tree that failure diagnostics are written to."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.dom_root = self.root / "dom_snapshots"
        self.screenshot_root = self.root / "screenshots"
        self.run_log_root = self.root / "run_logs"
        for directory in (self.root, self.dom_root, self.screenshot_root, self.run_log_root):
            directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_settings(cls, settings: ArtifactSettings) -> ArtifactManager:
        return cls(settings.root)

    @staticmethod
    def timestamp() -> str:
        return datetime.now(UTC).strftime("%Y%m%dT%H%M%S%fZ")

    def write_dom_snapshot(self, label: str, page_source: str, timestamp: str | None = None) -> Path:
        stamp = timestamp or self.timestamp()
        path = self.dom_root / f"{stamp}_{slugify(label)}.html"
        path.write_text(page_source, encoding="utf-8")
        return path

    def screenshot_path(self, label: str, timestamp: str | None = None) -> Path:
        stamp = timestamp or self.timestamp()
        return self.screenshot_root / f"{stamp}_{slugify(label)}.png"

    def write_run_log(self, message: str, timestamp: str | None = None) -> Path:
        stamp = timestamp or self.timestamp()
        path = self.run_log_root / f"{stamp}.log"
        path.write_text(message, encoding="utf-8")
        return path
