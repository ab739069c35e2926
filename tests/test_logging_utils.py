"""Tests for console logging helpers."""

import logging
import sys

from bandprint.logging_utils import (LOGGER_NAME, PrettyFormatter, _center_display,
                                     log_detail, log_section, log_success, setup_logging)


def test_setup_logging_is_idempotent():
    logger = setup_logging()
    setup_logging()
    ours = [h for h in logger.handlers if getattr(h, "_bandprint", False)]
    assert len(ours) == 1
    assert logger.name == LOGGER_NAME


def test_pretty_formatter_shows_level_origin_and_message():
    record = logging.LogRecord("bandprint.recognizer", logging.WARNING, __file__, 1,
                               "Skipped %d files", (2,), None)
    text = PrettyFormatter(color=False).format(record)
    assert "WARNING" in text
    assert "recognizer" in text
    assert "bandprint.recognizer" not in text
    assert text.endswith("Skipped 2 files")
    assert "\033[" not in text


def test_pretty_formatter_colours_the_level():
    record = logging.LogRecord("bandprint", logging.ERROR, __file__, 1, "boom", (), None)
    assert "\033[31m" in PrettyFormatter().format(record)


def test_pretty_formatter_appends_traceback():
    try:
        raise RuntimeError("decoder exploded")
    except RuntimeError:
        record = logging.LogRecord("bandprint.audio", logging.ERROR, __file__, 1,
                                   "failed", (), sys.exc_info())
    text = PrettyFormatter(color=False).format(record)
    assert "Traceback" in text
    assert "decoder exploded" in text


def test_center_display_pads_both_sides():
    assert _center_display("ab", 6) == "  ab  "
    assert _center_display("too long", 3) == "too long"


def test_center_display_counts_wide_characters():
    # the note emoji takes two terminal columns
    assert len(_center_display("🎵", 6)) == 5


def test_banners_go_through_the_package_logger(caplog):
    caplog.set_level(logging.INFO, logger=LOGGER_NAME)
    log_section("Indexing")
    log_detail("Workers", 4)
    log_success("Saved 3 songs")

    records = [r for r in caplog.records if r.name == LOGGER_NAME]
    messages = [r.getMessage() for r in records]
    assert len(records) == 5
    assert all(r.levelno == logging.INFO for r in records)
    assert "Indexing" in messages[1]
    assert messages[3] == "  Workers: 4"
    assert messages[4] == "✓ Saved 3 songs"
