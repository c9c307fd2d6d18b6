import json
import logging
from decimal import Decimal

from yield_router.observability.logging import (
    LOG_TAG_DECISION,
    FeedCredentialFilter,
    JSONFormatter,
    RouterLogFormatter,
)


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("yield_router.test", level, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFeedCredentialFilter:
    def test_masks_pro_api_path_key(self):
        record = _record("DefiLlama request failed: https://pro-api.llama.fi/abcdef0123456789/yields/pools")
        assert FeedCredentialFilter().filter(record)
        assert record.getMessage() == "DefiLlama request failed: https://pro-api.llama.fi/***MASKED***/yields/pools"

    def test_masks_query_parameter(self):
        record = _record("GET https://example.org/pools?chain=Base&apikey=s3cr3t&x=1")
        FeedCredentialFilter().filter(record)
        assert record.getMessage() == "GET https://example.org/pools?chain=Base&apikey=***MASKED***&x=1"

    def test_public_url_untouched(self):
        record = _record("Fetching https://yields.llama.fi/pools")
        FeedCredentialFilter().filter(record)
        assert record.getMessage() == "Fetching https://yields.llama.fi/pools"


def test_json_formatter_carries_decision_extras():
    record = _record(
        f"{LOG_TAG_DECISION} ACCEPT",
        should_act=True,
        improvement=Decimal("0.042"),
        cost_usd=Decimal("0.20"),
        protocol=None,
    )

    data = json.loads(JSONFormatter().format(record))

    assert data["level"] == "INFO"
    assert data["should_act"] is True
    assert data["improvement"] == 0.042
    assert data["cost_usd"] == 0.2
    assert "protocol" not in data


def test_console_formatter_replaces_tag_with_label():
    line = RouterLogFormatter().format(_record(f"{LOG_TAG_DECISION} HOLD MIN_HOLD: too early"))
    assert "[DECISION]" in line
    assert line.endswith("HOLD MIN_HOLD: too early")


def test_console_formatter_labels_warnings():
    line = RouterLogFormatter().format(_record("Vault file missing", level=logging.WARNING))
    assert "[WARN] Vault file missing" in line
