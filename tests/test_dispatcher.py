"""Tests for bridge.dispatcher -- formatting, host side effects, and responses."""

import asyncio
import logging

import pytest

from bridge.dispatcher import (
    compose_prompt,
    dispatch,
    format_block,
    line_count,
    respond_to_frame,
)
from bridge.messages import (
    ContextMessage,
    ErrorResponse,
    HealthMessage,
    HealthResponse,
    OkResponse,
    PromptMessage,
    UnknownKindMessage,
)
from tests.conftest import RecordingHost


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

class TestFormatBlock:

    def test_file_and_filetype(self):
        msg = ContextMessage(file="a.py", filetype="python", text="print(1)")
        assert format_block(msg) == "File: a.py (python)\n```python\nprint(1)\n```"

    def test_file_without_filetype(self):
        msg = ContextMessage(file="notes.txt", text="hello")
        assert format_block(msg) == "File: notes.txt\n```\nhello\n```"

    def test_filetype_without_file(self):
        msg = ContextMessage(filetype="lua", text="print(1)")
        assert format_block(msg) == "```lua\nprint(1)\n```"

    def test_existing_trailing_newline_not_doubled(self):
        msg = ContextMessage(text="a\nb\n")
        assert format_block(msg) == "```\na\nb\n```"

    def test_only_one_newline_added(self):
        msg = ContextMessage(text="a\n\n")
        assert format_block(msg) == "```\na\n\n```"


class TestComposePrompt:

    def test_prompt_precedes_block_after_blank_line(self):
        msg = PromptMessage(prompt="explain", text="x=1")
        assert compose_prompt(msg) == "explain\n\n```\nx=1\n```"

    def test_without_prompt_is_just_the_block(self):
        msg = PromptMessage(text="x=1", filetype="python")
        assert compose_prompt(msg) == "```python\nx=1\n```"


class TestLineCount:

    @pytest.mark.parametrize("text, expected", [
        ("x", 1),
        ("a\nb", 2),
        ("a\nb\n", 3),
        ("\n", 2),
    ])
    def test_counts_newline_separated_segments(self, text, expected):
        assert line_count(text) == expected


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

class TestDispatch:

    def test_health_reports_cwd_without_side_effects(self, host):
        response = dispatch(HealthMessage(), host)
        assert response == HealthResponse(cwd="/home/user/project")
        assert host.injected == []
        assert host.notifications == []

    def test_context_injects_for_next_turn(self, host):
        msg = ContextMessage(file="a.py", filetype="python", text="print(1)")
        response = dispatch(msg, host)
        assert response == OkResponse()
        assert host.context_messages == ["File: a.py (python)\n```python\nprint(1)\n```"]
        assert host.follow_ups == []
        assert host.notifications == [("nvim: received 1 lines", "info")]

    def test_prompt_injects_follow_up(self, host):
        msg = PromptMessage(prompt="explain", text="x=1\ny=2")
        response = dispatch(msg, host)
        assert response == OkResponse()
        assert host.context_messages == []
        assert len(host.follow_ups) == 1
        assert host.follow_ups[0].startswith("explain\n\n```\n")
        assert host.notifications == [("nvim: prompting with 2 lines", "info")]

    def test_unknown_kind_rejected_without_side_effects(self, host):
        response = dispatch(UnknownKindMessage(kind="frobnicate", text="x"), host)
        assert response == ErrorResponse(error="unknown type")
        assert host.injected == []
        assert host.notifications == []


class TestRespondToFrame:

    @pytest.mark.parametrize("frame, expected", [
        (b"{oops", ErrorResponse(error="invalid JSON")),
        (b'{"type":"context"}', ErrorResponse(error="missing 'text'")),
        (b'{"type":"frobnicate","text":"x"}', ErrorResponse(error="unknown type")),
        (b'{"type":"frobnicate"}', ErrorResponse(error="missing 'text'")),
    ])
    def test_rejections_never_touch_host(self, host, frame, expected):
        assert respond_to_frame(frame, host) == expected
        assert host.injected == []
        assert host.notifications == []

    def test_context_frame(self, host):
        frame = b'{"type":"context","file":"a.py","filetype":"python","text":"print(1)"}'
        assert respond_to_frame(frame, host) == OkResponse()
        assert host.context_messages == ["File: a.py (python)\n```python\nprint(1)\n```"]

    def test_prompt_frame(self, host):
        frame = b'{"type":"prompt","prompt":"explain","text":"x=1"}'
        assert respond_to_frame(frame, host) == OkResponse()
        assert host.follow_ups == ["explain\n\n```\nx=1\n```"]

    def test_lone_surrogate_text_is_dispatched(self, host):
        assert respond_to_frame(b'{"type":"context","text":"\\ud800"}', host) == OkResponse()
        assert host.context_messages == ["```\n\ud800\n```"]

    def test_health_frame(self, host):
        assert respond_to_frame(b'{"type":"health"}', host) == HealthResponse(cwd=host.cwd)


# ---------------------------------------------------------------------------
# Fire-and-forget host calls
# ---------------------------------------------------------------------------

class _FailingHost(RecordingHost):
    def inject_context_message(self, content):
        raise RuntimeError("host queue closed")


class _AsyncHost(RecordingHost):
    async def inject_follow_up(self, content):
        await asyncio.sleep(0)
        self.follow_ups.append(content)


class _AsyncFailingHost(RecordingHost):
    async def inject_follow_up(self, content):
        raise RuntimeError("delivery failed")


class TestHostFailures:

    def test_failing_host_still_answers_ok(self, caplog):
        host = _FailingHost()
        with caplog.at_level(logging.ERROR, logger="bridge.dispatcher"):
            response = dispatch(ContextMessage(text="x"), host)
        assert response == OkResponse()
        assert "inject_context_message" in caplog.text
        # The notification is a separate call and still happens
        assert host.notifications == [("nvim: received 1 lines", "info")]

    @pytest.mark.asyncio
    async def test_async_host_call_is_scheduled_not_awaited(self):
        host = _AsyncHost()
        response = dispatch(PromptMessage(text="x"), host)
        assert response == OkResponse()
        assert host.follow_ups == []
        for _ in range(5):
            await asyncio.sleep(0)
        assert host.follow_ups == ["```\nx\n```"]

    @pytest.mark.asyncio
    async def test_async_host_failure_is_logged(self, caplog):
        host = _AsyncFailingHost()
        with caplog.at_level(logging.ERROR, logger="bridge.dispatcher"):
            response = dispatch(PromptMessage(text="x"), host)
            for _ in range(5):
                await asyncio.sleep(0)
        assert response == OkResponse()
        assert "delivery failed" in caplog.text
        assert "inject_follow_up" in caplog.text
