import sys

from loguru import logger

from propbot.config.schema import Config
from propbot.core.logger import configure_logger, mask_record


def test_mask_record_masks_phone_numbers():
    record = {"message": "Inbound from +13125550100 (dana@example.com)"}

    mask_record(record)

    assert "+13125550100" not in record["message"]
    assert "+131****100" in record["message"]
    assert "d***@example.com" in record["message"]


def test_configured_logger_masks_every_sink():
    config = Config()
    configure_logger(config)
    captured: list[str] = []
    sink_id = logger.add(captured.append, format="{message}")

    try:
        logger.info("Processing SMS from +13125550100")
    finally:
        logger.remove(sink_id)

    assert captured == ["Processing SMS from +131****100\n"]


def test_file_sink(tmp_path):
    config = Config()
    config.logging.file_enabled = True
    config.logging.file_path = str(tmp_path / "propbot.log")

    configure_logger(config)
    logger.info("Gateway started")
    logger.remove()

    assert "Gateway started" in (tmp_path / "propbot.log").read_text()


def test_disabled_logging_adds_no_sink(monkeypatch):
    config = Config()
    config.logging.enabled = False
    calls = []

    monkeypatch.setattr("propbot.core.logger.logger.remove", lambda *args, **kwargs: None)
    monkeypatch.setattr("propbot.core.logger.logger.add", lambda sink, *args, **kwargs: calls.append(sink))

    configure_logger(config)

    assert calls == []


def test_console_sink_uses_configured_level(monkeypatch):
    config = Config()
    config.logging.level = "DEBUG"
    calls = []

    monkeypatch.setattr("propbot.core.logger.logger.remove", lambda *args, **kwargs: None)
    monkeypatch.setattr(
        "propbot.core.logger.logger.add",
        lambda sink, *args, **kwargs: calls.append((sink, kwargs.get("level"))),
    )

    configure_logger(config)

    assert calls == [(sys.stderr, "DEBUG")]
