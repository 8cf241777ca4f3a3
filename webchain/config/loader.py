from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from webchain.config.schema import SuiteConfig

ENV_OVERRIDES = {
    "WEBCHAIN_POLL_INTERVAL": ("chain", "poll_interval_seconds"),
    "WEBCHAIN_POLL_TIMEOUT": ("chain", "poll_timeout_seconds"),
    "WEBCHAIN_ARTIFACTS_ROOT": ("artifacts", "root"),
    "WEBCHAIN_BROWSER": ("browser", "name"),
}


class ConfigLoader:
    """Loads the JSON suite configuration, then applies ``WEBCHAIN_*`` overrides."""

    @staticmethod
    def load(path: str | Path | None = None) -> SuiteConfig:
        payload: dict[str, Any] = {}
        if path is not None:
            with Path(path).open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        for variable, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(variable)
            if value:
                payload.setdefault(section, {})[key] = value
        return SuiteConfig.model_validate(payload)
