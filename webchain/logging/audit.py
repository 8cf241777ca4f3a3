from __future__ import annotations

import json
import logging
from pathlib import Path

from selenium.common.exceptions import WebDriverException

from webchain.core.metadata import FailureRecord
from webchain.logging.artifacts import ArtifactManager

logger = logging.getLogger(__name__)


class FailureAuditLogger:
    """Appends one JSON line per terminal chain failure."""

    def __init__(self, root: str | Path = "artifacts") -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.failures_path = self.root / "chain_failures.jsonl"

    def write(self, record: FailureRecord) -> None:
        with self.failures_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record.to_payload(), sort_keys=True) + "\n")

    def read(self) -> list[FailureRecord]:
        if not self.failures_path.exists():
            return []
        records = []
        for line in self.failures_path.read_text(encoding="utf-8").splitlines():
            if line.strip():
                records.append(FailureRecord(**json.loads(line)))
        return records


def capture_on_error(artifact_manager: ArtifactManager, audit_logger: FailureAuditLogger):
    """Builds an ``on_error`` callback that saves a screenshot, the DOM and an audit record.

    Capture problems are logged and never mask the chain's own error.
    """

    def capture(error, chain) -> None:
        timestamp = artifact_manager.timestamp()
        driver = chain.driver
        artifact_paths: dict[str, str] = {}
        url = ""
        try:
            url = driver.current_url
            screenshot_path = artifact_manager.screenshot_path(error.stage, timestamp)
            screenshot_path.write_bytes(driver.get_screenshot_as_png())
            artifact_paths["screenshot"] = str(screenshot_path)
            dom_path = artifact_manager.write_dom_snapshot(error.stage, driver.page_source, timestamp)
            artifact_paths["dom_snapshot"] = str(dom_path)
        except (WebDriverException, OSError) as exc:
            logger.warning("Could not capture diagnostics for %s: %s", error.stage, exc)
        artifact_paths["run_log"] = str(artifact_manager.write_run_log(f"{error}\n", timestamp))
        record = FailureRecord.from_error(
            error,
            url=url,
            timestamp=timestamp,
            artifact_paths=artifact_paths,
        )
        audit_logger.write(record)
        logger.info("Recorded chain failure at %s during %s", record.call_site, record.stage)

    return capture
