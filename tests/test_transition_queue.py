"""Tests for TransitionQueue — FIFO, single-flight delivery."""

from __future__ import annotations

import threading

import pytest

from vimimswitch.core.modes import Transition, TransitionKind
from vimimswitch.core.transition_queue import TransitionQueue


def _t(seq: int, kind=TransitionKind.ENTER_INSERT) -> Transition:
    return Transition(kind=kind, mode="insert", seq=seq)


def test_process_pending_without_thread():
    handled = []
    q = TransitionQueue(handled.append, start_thread=False)
    for i in range(3):
        q.submit(_t(i))
    assert q.pending == 3
    assert q.process_pending() == 3
    assert [t.seq for t in handled] == [0, 1, 2]
    assert q.pending == 0


def test_handler_error_does_not_stop_processing():
    handled = []

    def handler(t):
        if t.seq == 1:
            raise RuntimeError("boom")
        handled.append(t.seq)

    q = TransitionQueue(handler, start_thread=False)
    for i in range(3):
        q.submit(_t(i))
    q.process_pending()
    assert handled == [0, 2]


@pytest.mark.timeout(10)
def test_worker_preserves_order_and_never_overlaps():
    handled = []
    in_flight = threading.Semaphore(1)
    overlaps = []

    def handler(t):
        if not in_flight.acquire(blocking=False):
            overlaps.append(t.seq)
            return
        try:
            handled.append(t.seq)
        finally:
            in_flight.release()

    q = TransitionQueue(handler)
    try:
        for i in range(200):
            q.submit(_t(i))
        q.join()
    finally:
        q.stop()
    assert handled == list(range(200))
    assert overlaps == []


@pytest.mark.timeout(10)
def test_stop_drains_queue_first():
    gate = threading.Event()
    handled = []

    def handler(t):
        gate.wait(5)
        handled.append(t.seq)

    q = TransitionQueue(handler)
    q.submit(_t(1))
    q.submit(_t(2))
    gate.set()
    q.stop(timeout=5)
    assert handled == [1, 2]
    assert not q.is_running


@pytest.mark.timeout(10)
def test_start_is_idempotent():
    q = TransitionQueue(lambda t: None)
    try:
        thread = q._thread
        q.start()
        assert q._thread is thread
        assert q.is_running
    finally:
        q.stop()


@pytest.mark.timeout(10)
def test_stop_warns_when_worker_outlives_timeout(caplog):
    release = threading.Event()
    started = threading.Event()

    def handler(t):
        started.set()
        release.wait(5)

    q = TransitionQueue(handler)
    q.submit(_t(0))
    assert started.wait(5)
    try:
        q.stop(timeout=0.05)
        assert "still busy" in caplog.text
    finally:
        release.set()
