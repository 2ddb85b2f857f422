"""Tests for pi.chat_input.echo.EchoReconciler."""

from __future__ import annotations

from pi.chat_input.echo import EchoReconciler, EchoStatus


class TestEchoReconciler:
    def test_initial_state(self) -> None:
        rec = EchoReconciler("hi")
        assert rec.last_emitted_value == "hi"
        assert rec.status is EchoStatus.SYNCED

    def test_echo_is_not_a_reset(self) -> None:
        rec = EchoReconciler("")
        rec.record_emitted("abc")
        outcome = rec.reconcile("abc")
        assert outcome.replace is False
        assert outcome.status is EchoStatus.SYNCED

    def test_echo_carries_nudge(self) -> None:
        rec = EchoReconciler("abc")
        assert rec.reconcile("abc", cursor_nudge=1).cursor == 1

    def test_external_value_replaces_with_cursor_at_end(self) -> None:
        rec = EchoReconciler("abc")
        outcome = rec.reconcile("")
        assert outcome.replace is True
        assert outcome.status is EchoStatus.DIVERGED
        assert outcome.value == ""
        assert outcome.cursor == 0
        assert rec.status is EchoStatus.DIVERGED

    def test_external_value_with_nudge_is_clamped(self) -> None:
        rec = EchoReconciler("")
        assert rec.reconcile("hello", cursor_nudge=2).cursor == 2
        assert EchoReconciler("").reconcile("hello", cursor_nudge=40).cursor == 5

    def test_reset_is_adopted(self) -> None:
        rec = EchoReconciler("abc")
        rec.reconcile("xyz")
        assert rec.last_emitted_value == "xyz"
        assert rec.reconcile("xyz").replace is False

    def test_record_emitted_resyncs(self) -> None:
        rec = EchoReconciler("a")
        rec.reconcile("b")
        rec.record_emitted("bc")
        assert rec.status is EchoStatus.SYNCED
        assert rec.last_emitted_value == "bc"

    def test_stale_echo_is_treated_as_reset(self) -> None:
        rec = EchoReconciler("")
        rec.record_emitted("a")
        rec.record_emitted("ab")
        outcome = rec.reconcile("a")
        assert outcome.replace is True
        assert outcome.value == "a"
