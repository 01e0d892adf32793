from __future__ import annotations

import io
import json
import logging

import pytest

from modscope.logging import (
    EVENT_SCHEMAS,
    configure_logging,
    get_logger,
    qualify_event_name,
)


def test_qualify_event_name():
    assert qualify_event_name("archive.built") == "modscope.archive.built"
    assert qualify_event_name("modscope.archive.built") == "modscope.archive.built"
    with pytest.raises(ValueError):
        qualify_event_name(" . ")


def test_ndjson_output_carries_event_and_data():
    stream = io.StringIO()
    with configure_logging(log_format="ndjson", log_level=logging.DEBUG, stream=stream):
        get_logger("test").event("archive.built", output="out.zip", entry_count=3, module_count=1)

    record = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert record["event"] == "modscope.archive.built"
    assert record["level"] == "info"
    assert record["data"] == {"output": "out.zip", "entry_count": 3, "module_count": 1}
    assert record["timestamp"].endswith("Z")


def test_text_output_includes_payload_and_errors():
    stream = io.StringIO()
    with configure_logging(log_format="text", log_level=logging.DEBUG, stream=stream):
        try:
            raise OSError("disk full")
        except OSError as exc:
            get_logger("test").event(
                "staging.cleanup_failed",
                level=logging.WARNING,
                staging_dir="/tmp/x",
                error=str(exc),
                exc=exc,
            )

    text = stream.getvalue()
    assert "WARNING modscope.staging.cleanup_failed" in text
    assert "staging_dir=/tmp/x" in text
    assert "OSError: disk full" in text


def test_strict_events_are_validated():
    with configure_logging(log_level=logging.DEBUG, stream=io.StringIO()):
        logger = get_logger("test")
        with pytest.raises(ValueError, match="Unknown event"):
            logger.event("made.up")
        with pytest.raises(ValueError, match="Invalid payload"):
            logger.event("archive.built", output="x.zip")
        with pytest.raises(ValueError, match="Invalid payload"):
            logger.event("staging.created", staging_dir="/tmp/x", extra_field=1)


def test_free_form_events_are_not_validated():
    assert EVENT_SCHEMAS["modscope.scope.activated"] is None
    stream = io.StringIO()
    with configure_logging(log_format="ndjson", log_level=logging.DEBUG, stream=stream):
        get_logger().event("scope.activated", entries=["a", "b"])
        get_logger().info("plain line")

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[0]["data"] == {"entries": ["a", "b"]}
    assert lines[1]["event"] == "modscope.log"
    assert lines[1]["message"] == "plain line"


def test_disabled_levels_skip_validation():
    with configure_logging(log_level=logging.WARNING, stream=io.StringIO()):
        get_logger("test").event("made.up", level=logging.DEBUG)


def test_context_close_detaches_handler():
    base = logging.getLogger("modscope")
    before = list(base.handlers)
    previous = base.level

    ctx = configure_logging(log_level=logging.DEBUG, stream=io.StringIO())
    assert len(base.handlers) == len(before) + 1
    ctx.close()

    assert base.handlers == before
    assert base.level == previous


def test_unknown_format_is_rejected():
    with pytest.raises(ValueError):
        configure_logging(log_format="xml")
