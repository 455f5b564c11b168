import json
import logging

from marketplace_ledger.utils.logging import CustomLogger, JsonFormatter


def test_extra_fields_are_nested_in_json():
    logger = CustomLogger("test")
    record = logger.makeRecord(
        "test",
        logging.INFO,
        __file__,
        10,
        "[Marketplace] Market item sold",
        (),
        None,
        extra={"market_item_id": 3, "buyer": "0xabc"},
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["fields"] == {
        "message": "[Marketplace] Market item sold",
        "market_item_id": 3,
        "buyer": "0xabc",
    }
    assert payload["line_no"] == 10


def test_record_without_extra():
    logger = CustomLogger("test")
    record = logger.makeRecord(
        "test", logging.WARNING, __file__, 1, "plain", (), None
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["fields"] == {"message": "plain"}
    assert "exception" not in payload
    assert "ledger" not in payload


def test_ledger_name_is_stamped():
    logger = CustomLogger("test")
    logger.ledger_name = "marketplace_test"
    record = logger.makeRecord("test", logging.INFO, __file__, 1, "hi", (), None)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["ledger"] == "marketplace_test"
    assert payload["fields"] == {"message": "hi"}
