"""Tests for ConnectionManager: lifecycle, reconnects, heartbeats and dispatch."""

from __future__ import annotations

import json
import logging

import pytest

from fourinarow.session.connection import ConnectionManager, build_connect_url
from fourinarow.shared.exceptions import ReconnectExhaustedError
from fourinarow.types import Cell, MoveMessage, PongMessage, SessionStatus

WS = "ws://localhost:9090/ws"


def _state(turn: int = 1) -> str:
    board = [[0] * 7 for _ in range(6)]
    board[5][3] = 1
    return json.dumps({"type": "state", "board": board, "turn": turn})


class TestConnect:
    def test_builds_url_with_username(self, manager, transports, machine):
        assert manager.connect(WS, "alice") is True
        assert transports.last.url == "ws://localhost:9090/ws?username=alice"
        assert manager.url == transports.last.url
        assert machine.status is SessionStatus.CONNECTING

    def test_username_is_url_encoded(self):
        assert build_connect_url(WS, "al ice&x") == f"{WS}?username=al+ice%26x"
        assert build_connect_url(f"{WS}?v=1", "bob") == f"{WS}?v=1&username=bob"

    @pytest.mark.parametrize("identity", ["", "   "])
    def test_empty_identity_is_rejected(self, manager, transports, machine, identity, caplog):
        with caplog.at_level(logging.WARNING):
            assert manager.connect(WS, identity) is False
        assert transports.created == []
        assert machine.status is SessionStatus.DISCONNECTED
        assert "username is empty" in caplog.text

    def test_open_moves_to_waiting(self, connected, machine, scheduler):
        assert machine.status is SessionStatus.CONNECTED_WAITING
        assert connected.is_open
        assert connected.attempt_state.attempts == 0
        assert connected.attempt_state.last_connect_at == scheduler.now

    def test_new_connect_replaces_old_channel(self, connected, transports, machine):
        first = transports.last
        assert connected.connect(WS, "bob") is True

        assert first.closed
        assert len(transports.created) == 2
        assert machine.status is SessionStatus.CONNECTING

        # Late events from the first channel are ignored
        first.drop()
        first.receive('{"type":"start"}')
        assert machine.status is SessionStatus.CONNECTING
        assert connected.attempt_state.reconnect is None

    def test_disconnect(self, connected, transports, machine, scheduler):
        transport = transports.last
        connected.disconnect()

        assert transport.closed
        assert machine.status is SessionStatus.DISCONNECTED
        transport.drop()
        scheduler.advance(60)
        assert len(transports.created) == 1


class TestReconnect:
    def test_close_schedules_reconnect(self, connected, transports, machine, scheduler):
        transports.last.receive('{"type":"start"}')
        assert machine.status is SessionStatus.PLAYING

        transports.last.drop("server restart")
        assert machine.status is SessionStatus.CONNECTING
        assert connected.attempt_state.attempts == 1
        assert len(transports.created) == 1

        scheduler.advance(2.9)
        assert len(transports.created) == 1
        scheduler.advance(0.2)
        assert len(transports.created) == 2
        assert transports.last.url == transports.created[0].url

    def test_successful_open_resets_attempts(self, connected, transports, scheduler, machine):
        for _ in range(3):
            transports.last.fail()
            scheduler.advance(3)
        assert connected.attempt_state.attempts == 3

        transports.last.accept()
        assert connected.attempt_state.attempts == 0
        assert machine.status is SessionStatus.CONNECTED_WAITING

    def test_gives_up_after_ten_attempts(self, manager, transports, scheduler, machine):
        failures: list[ReconnectExhaustedError] = []
        manager.add_give_up_listener(failures.append)
        manager.connect(WS, "alice")

        transports.last.fail()
        for _ in range(10):
            scheduler.advance(3)
            transports.last.fail()

        # Initial attempt plus ten reconnects, then nothing more
        assert len(transports.created) == 11
        assert scheduler.pending == []
        scheduler.advance(300)
        assert len(transports.created) == 11

        assert manager.exhausted
        assert machine.status is SessionStatus.DISCONNECTED
        assert len(failures) == 1
        assert failures[0].attempts == 10

    def test_connect_after_give_up_starts_over(self, manager, transports, scheduler, machine):
        manager.max_reconnect_attempts = 1
        manager.connect(WS, "alice")
        transports.last.fail()
        scheduler.advance(3)
        transports.last.fail()
        assert manager.exhausted

        manager.connect(WS, "alice")
        assert not manager.exhausted
        assert machine.status is SessionStatus.CONNECTING
        assert manager.attempt_state.attempts == 0

    def test_error_alone_does_not_reconnect(self, connected, transports, scheduler, caplog):
        with caplog.at_level(logging.ERROR):
            transports.last.listener.on_error(OSError("reset"))
        assert "Transport error" in caplog.text
        assert connected.attempt_state.reconnect is None
        scheduler.advance(10)
        assert len(transports.created) == 1

    def test_stale_reconnect_timer_is_ignored(self, connected, transports, scheduler):
        transports.last.drop()
        pending = connected.attempt_state.reconnect
        assert pending is not None

        connected.connect(WS, "carol")
        assert len(transports.created) == 2
        # Fire the superseded timer's callback directly
        pending.callback()
        assert len(transports.created) == 2


class TestHeartbeat:
    def test_cadence(self, connected, transports, scheduler):
        transport = transports.last
        scheduler.advance(200)
        assert transport.probes == 4

    def test_none_after_disconnect(self, connected, transports, scheduler):
        transport = transports.last
        scheduler.advance(100)
        assert transport.probes == 2
        transport.drop()
        scheduler.advance(1000)
        assert transport.probes == 2

    def test_restarts_after_reconnect(self, connected, transports, scheduler):
        transports.last.drop()
        scheduler.advance(3)
        transports.last.accept()
        scheduler.advance(45)
        assert transports.created[0].probes == 0
        assert transports.last.probes == 1

    def test_not_sent_before_open(self, manager, transports, scheduler):
        manager.connect(WS, "alice")
        scheduler.advance(100)
        assert transports.last.probes == 0


class TestDispatch:
    def test_ping_is_answered_with_pong(self, connected, transports):
        transports.last.receive('{"type":"ping"}')
        assert transports.last.sent == ['{"type":"pong"}']

    def test_pong_is_acknowledged_silently(self, connected, transports, machine):
        transports.last.receive('{"type":"pong"}')
        assert transports.last.sent == []
        assert machine.status is SessionStatus.CONNECTED_WAITING

    @pytest.mark.parametrize("kind", ["start", "start_game"])
    def test_start_aliases(self, connected, transports, machine, kind):
        transports.last.receive(json.dumps({"type": kind, "players": ["alice", "bob"]}))
        assert machine.status is SessionStatus.PLAYING

    @pytest.mark.parametrize(
        "raw",
        [_state(), '{"type":"pong"}', '{"type":"ping"}', '{"type":"chat","text":"hi"}'],
    )
    def test_other_kinds_keep_waiting(self, connected, transports, machine, raw):
        transports.last.receive(raw)
        assert machine.status is SessionStatus.CONNECTED_WAITING

    def test_end_while_waiting_is_ignored_by_machine(self, connected, transports, machine, store):
        transports.last.receive('{"type":"end","winner":"bob"}')
        assert machine.status is SessionStatus.CONNECTED_WAITING
        assert store.winner == "bob"

    def test_full_game(self, connected, transports, machine, store):
        transports.last.receive('{"type":"start"}' + _state(turn=2))
        assert machine.status is SessionStatus.PLAYING
        assert store.turn == 2
        assert store.board[5][3] is Cell.PLAYER_ONE

        ended = []
        store.add_end_listener(ended.append)
        transports.last.receive('{"type":"end","winner":"Draw"}')
        assert machine.status is SessionStatus.ENDED
        assert ended == ["Draw"]
        assert store.board[5][3] is Cell.PLAYER_ONE

    def test_order_within_chunk(self, connected, transports, machine):
        seen = []
        machine.add_listener(lambda old, new: seen.append(new))
        transports.last.receive('{"type":"start"}{"type":"end","winner":"alice"}')
        assert seen == [SessionStatus.PLAYING, SessionStatus.ENDED]

    def test_garbage_does_not_break_dispatch(self, connected, transports, machine):
        transports.last.receive('{"type":"start"}{nope}{"type":"ping"}')
        assert machine.status is SessionStatus.PLAYING
        assert transports.last.sent == ['{"type":"pong"}']


class TestSend:
    def test_send_when_open(self, connected, transports):
        assert connected.send(MoveMessage(column=4)) is True
        assert json.loads(transports.last.sent[0]) == {"type": "move", "column": 4}

    def test_send_when_not_open_is_dropped(self, manager, transports):
        assert manager.send(PongMessage()) is False
        manager.connect(WS, "alice")
        assert manager.send(PongMessage()) is False
        assert transports.last.sent == []

    def test_send_after_close_is_dropped(self, connected, transports):
        transport = transports.last
        transport.drop()
        assert connected.send(MoveMessage(column=1)) is False
        assert transport.sent == []


def test_opening_without_endpoint_is_an_error(manager, transports):
    with pytest.raises(RuntimeError, match="call connect"):
        manager._open_transport()
    assert transports.created == []


def test_manager_defaults(machine, store):
    manager = ConnectionManager(machine, store)
    assert manager.max_reconnect_attempts == 10
    assert manager.reconnect_interval == 3.0
    assert manager.heartbeat_interval == 45.0
    assert manager.generation == 0
    assert not manager.is_open
