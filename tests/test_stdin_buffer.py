"""Tests for pi.chat_input.stdin_buffer.StdinBuffer."""

from __future__ import annotations

import asyncio

import pytest

from pi.chat_input.stdin_buffer import (
    BRACKETED_PASTE_END,
    BRACKETED_PASTE_START,
    ESC,
    StdinBuffer,
    _extract_complete_sequences,
    _is_complete_sequence,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Collector:
    """Collects emitted data/paste events for assertions."""

    def __init__(self) -> None:
        self.data: list[str] = []
        self.pastes: list[str] = []

    def on_data(self, d: str) -> None:
        self.data.append(d)

    def on_paste(self, d: str) -> None:
        self.pastes.append(d)


def make_buffer(timeout: float = 0.01) -> tuple[StdinBuffer, Collector]:
    buf = StdinBuffer(timeout=timeout)
    col = Collector()
    buf.on_data(col.on_data)
    buf.on_paste(col.on_paste)
    return buf, col


# ---------------------------------------------------------------------------
# _is_complete_sequence
# ---------------------------------------------------------------------------


class TestIsCompleteSequence:
    def test_non_escape_returns_not_escape(self) -> None:
        assert _is_complete_sequence("a") == "not-escape"
        assert _is_complete_sequence("hello") == "not-escape"

    def test_lone_esc_is_incomplete(self) -> None:
        assert _is_complete_sequence(ESC) == "incomplete"

    def test_meta_key_sequence_is_complete(self) -> None:
        assert _is_complete_sequence(f"{ESC}b") == "complete"
        assert _is_complete_sequence(f"{ESC}\x7f") == "complete"

    def test_csi_incomplete_without_terminator(self) -> None:
        assert _is_complete_sequence(f"{ESC}[") == "incomplete"
        assert _is_complete_sequence(f"{ESC}[1;") == "incomplete"

    def test_modified_arrow_is_complete(self) -> None:
        assert _is_complete_sequence(f"{ESC}[1;3D") == "complete"

    def test_sgr_mouse(self) -> None:
        assert _is_complete_sequence(f"{ESC}[<0;10;20M") == "complete"
        assert _is_complete_sequence(f"{ESC}[<0;10") == "incomplete"

    def test_osc_terminators(self) -> None:
        assert _is_complete_sequence(f"{ESC}]1337;File=x") == "incomplete"
        assert _is_complete_sequence(f"{ESC}]1337;File=x\x07") == "complete"
        assert _is_complete_sequence(f"{ESC}]0;t{ESC}\\") == "complete"

    def test_ss3(self) -> None:
        assert _is_complete_sequence(f"{ESC}O") == "incomplete"
        assert _is_complete_sequence(f"{ESC}OD") == "complete"


# ---------------------------------------------------------------------------
# _extract_complete_sequences
# ---------------------------------------------------------------------------


class TestExtractCompleteSequences:
    def test_empty_string(self) -> None:
        assert _extract_complete_sequences("") == ([], "")

    def test_text_run_stays_together(self) -> None:
        seqs, rem = _extract_complete_sequences("abc")
        assert seqs == ["abc"]
        assert rem == ""

    def test_text_run_keeps_embedded_del_and_bs(self) -> None:
        seqs, _ = _extract_complete_sequences("ni\x7f\x7f你")
        assert seqs == ["ni\x7f\x7f你"]
        seqs, _ = _extract_complete_sequences("a\x08b")
        assert seqs == ["a\x08b"]

    def test_control_characters_are_standalone(self) -> None:
        seqs, _ = _extract_complete_sequences("ab\rcd\x17")
        assert seqs == ["ab", "\r", "cd", "\x17"]

    def test_escape_splits_text_runs(self) -> None:
        seqs, rem = _extract_complete_sequences(f"a{ESC}[Ab")
        assert seqs == ["a", f"{ESC}[A", "b"]
        assert rem == ""

    def test_incomplete_escape_goes_to_remainder(self) -> None:
        seqs, rem = _extract_complete_sequences(f"x{ESC}[1")
        assert seqs == ["x"]
        assert rem == f"{ESC}[1"

    def test_consecutive_escape_sequences(self) -> None:
        seqs, rem = _extract_complete_sequences(f"{ESC}b{ESC}[1;3C")
        assert seqs == [f"{ESC}b", f"{ESC}[1;3C"]
        assert rem == ""


# ---------------------------------------------------------------------------
# StdinBuffer.process
# ---------------------------------------------------------------------------


class TestProcess:
    def test_text_chunk_emitted_once(self) -> None:
        buf, col = make_buffer()
        buf.process("hello")
        assert col.data == ["hello"]

    def test_empty_data_with_empty_buffer_emits_nothing(self) -> None:
        buf, col = make_buffer()
        buf.process("")
        assert col.data == []

    def test_no_callback_does_not_raise(self) -> None:
        buf = StdinBuffer()
        buf.process("abc")

    def test_lone_escape_without_loop_flushes_immediately(self) -> None:
        buf, col = make_buffer()
        buf.process(ESC)
        assert col.data == [ESC]
        assert buf.get_buffer() == ""

    @pytest.mark.asyncio
    async def test_partial_escape_buffered(self) -> None:
        buf, col = make_buffer()
        buf.process(ESC)
        assert col.data == []
        assert buf.get_buffer() == ESC

    @pytest.mark.asyncio
    async def test_split_csi_across_chunks(self) -> None:
        buf, col = make_buffer()
        buf.process(f"{ESC}[1;")
        assert col.data == []
        buf.process("3D")
        assert col.data == [f"{ESC}[1;3D"]


# ---------------------------------------------------------------------------
# Bracketed paste
# ---------------------------------------------------------------------------


class TestBracketedPaste:
    def test_paste_emitted_whole(self) -> None:
        buf, col = make_buffer()
        buf.process(f"{BRACKETED_PASTE_START}line1\nline2{BRACKETED_PASTE_END}")
        assert col.pastes == ["line1\nline2"]
        assert col.data == []

    def test_paste_split_across_chunks(self) -> None:
        buf, col = make_buffer()
        buf.process(f"{BRACKETED_PASTE_START}first ")
        assert col.pastes == []
        buf.process(f"second{BRACKETED_PASTE_END}")
        assert col.pastes == ["first second"]

    def test_data_around_paste(self) -> None:
        buf, col = make_buffer()
        buf.process(f"ab{BRACKETED_PASTE_START}xyz{BRACKETED_PASTE_END}cd")
        assert col.data == ["ab", "cd"]
        assert col.pastes == ["xyz"]

    def test_empty_paste(self) -> None:
        buf, col = make_buffer()
        buf.process(f"{BRACKETED_PASTE_START}{BRACKETED_PASTE_END}")
        assert col.pastes == [""]

    def test_escape_sequences_inside_paste_are_not_split(self) -> None:
        buf, col = make_buffer()
        buf.process(f"{BRACKETED_PASTE_START}a{ESC}[Ab{BRACKETED_PASTE_END}")
        assert col.pastes == [f"a{ESC}[Ab"]
        assert col.data == []


# ---------------------------------------------------------------------------
# flush / clear / destroy
# ---------------------------------------------------------------------------


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_flush_returns_buffered_content(self) -> None:
        buf, _ = make_buffer()
        buf.process(ESC)
        assert buf.flush() == [ESC]
        assert buf.get_buffer() == ""

    def test_flush_empty(self) -> None:
        buf, _ = make_buffer()
        assert buf.flush() == []

    def test_clear_resets_paste_mode(self) -> None:
        buf, _ = make_buffer()
        buf.process(f"{BRACKETED_PASTE_START}partial")
        buf.clear()
        assert buf._paste_mode is False
        assert buf._paste_buffer == ""

    def test_destroy_drops_callbacks(self) -> None:
        buf, col = make_buffer()
        buf.destroy()
        buf.process("abc")
        assert col.data == []


class TestTimeoutFlush:
    @pytest.mark.asyncio
    async def test_incomplete_sequence_flushed_on_timeout(self) -> None:
        buf, col = make_buffer(timeout=0.02)
        buf.process(ESC)
        assert col.data == []
        await asyncio.sleep(0.05)
        assert col.data == [ESC]

    @pytest.mark.asyncio
    async def test_timeout_cancelled_on_new_data(self) -> None:
        buf, col = make_buffer(timeout=0.05)
        buf.process(ESC)
        buf.process("[A")
        assert col.data == [f"{ESC}[A"]
        await asyncio.sleep(0.08)
        assert col.data.count(f"{ESC}[A") == 1
