from __future__ import annotations

from pathlib import Path

import pytest

from webchain.config.loader import ConfigLoader
from webchain.config.schema import ChainSettings
from webchain.logging.artifacts import ArtifactManager


@pytest.fixture()
def suite_config():
    config_path = Path(__file__).resolve().parents[1] / "config" / "suite.json"
    return ConfigLoader.load(config_path)


@pytest.fixture()
def artifact_manager(tmp_path, monkeypatch):
    monkeypatch.setenv("WEBCHAIN_ARTIFACTS_ROOT", str(tmp_path / "artifacts"))
    return ArtifactManager.from_settings(ConfigLoader.load().artifacts)


@pytest.fixture()
def fast_settings():
    return ChainSettings(poll_interval_seconds=0.01, poll_timeout_seconds=0.2)
