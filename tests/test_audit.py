from __future__ import annotations

from webchain.core.chain import start
from webchain.logging.audit import FailureAuditLogger, capture_on_error
from tests.helpers import FakeDriver, FakeElement


def test_capture_on_error_saves_screenshot_dom_and_record(artifact_manager):
    audit_logger = FailureAuditLogger(artifact_manager.root)
    driver = FakeDriver(url="https://x/login", page_source="<html>login</html>", elements={"li": [FakeElement(), FakeElement()]})
    chain = start(driver, artifacts=artifact_manager).on_error(capture_on_error(artifact_manager, audit_logger))
    chain.find("li").any().text().equals("never").end()

    records = audit_logger.read()
    assert len(records) == 1
    record = records[0]
    assert record.stage == "Text Equals Test"
    assert record.cause_type == "AggregateError"
    assert record.sub_errors == 2
    assert record.url == "https://x/login"
    assert record.call_site.startswith("test_audit.py:")
    assert list(artifact_manager.screenshot_root.iterdir())
    assert "login" in next(artifact_manager.dom_root.iterdir()).read_text(encoding="utf-8")


def test_capture_survives_driver_failures(artifact_manager):
    audit_logger = FailureAuditLogger(artifact_manager.root)
    driver = FakeDriver(fail={"get", "get_screenshot_as_png"})
    chain = start(driver).on_error(capture_on_error(artifact_manager, audit_logger))
    error = chain.get("x").end()
    records = audit_logger.read()
    assert records[0].stage == error.stage == "Get"
    assert set(records[0].artifact_paths) == {"run_log"}


def test_clean_chain_writes_nothing(artifact_manager):
    audit_logger = FailureAuditLogger(artifact_manager.root)
    start(FakeDriver()).on_error(capture_on_error(artifact_manager, audit_logger)).get("x").end()
    assert audit_logger.read() == []
