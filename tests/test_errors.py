"""Tests for the error taxonomy and PipelineReport."""

import pytest

from hackfeed.errors import (
    HackfeedError,
    InvalidArgumentError,
    NotFoundError,
    PipelineReport,
    TransitionError,
)


class TestErrors:
    def test_not_found_is_key_error(self):
        with pytest.raises(KeyError):
            raise NotFoundError("Content abc not found")

    def test_not_found_message_unquoted(self):
        assert str(NotFoundError("Content abc not found")) == "Content abc not found"

    def test_invalid_argument_is_value_error(self):
        assert issubclass(InvalidArgumentError, ValueError)
        assert issubclass(InvalidArgumentError, HackfeedError)

    def test_transition_error_context(self):
        exc = TransitionError("delete failed", content_id="c1", reason="duplicate", phase="delete")
        assert exc.content_id == "c1"
        assert "reason=duplicate" in str(exc)
        assert "phase=delete" in str(exc)


class TestPipelineReport:
    def test_empty(self):
        report = PipelineReport()
        assert not report.has_errors
        assert report.error_count == 0

    def test_errors_by_stage(self):
        report = PipelineReport()
        report.add_error("generate", "timeout", source="cat-1", error_type="generation_error")
        report.add_error("generate", "bad json", source="cat-2")
        report.add_error("retire", "locked")

        assert report.has_errors
        assert report.error_count == 3
        assert report.errors_by_stage() == {"generate": 2, "retire": 1}
        assert report.errors[0].error_type == "generation_error"
