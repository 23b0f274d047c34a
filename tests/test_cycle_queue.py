"""
test_cycle_queue.py - Testes para a fila serial de ciclos

Propósito:
    Validar ordem FIFO, execução serial e comportamento após shutdown.
"""

from __future__ import annotations

import threading
import time

from neogo_lsp.cycle_queue import CycleQueue


def test_runs_in_delivery_order():
    queue = CycleQueue()
    seen = []
    try:
        for i in range(20):
            queue.submit(seen.append, i)
    finally:
        queue.shutdown()
    assert seen == list(range(20))


def test_at_most_one_cycle_in_flight():
    queue = CycleQueue()
    lock = threading.Lock()
    running = []
    overlap = []

    def cycle():
        with lock:
            running.append(1)
            overlap.append(len(running))
        time.sleep(0.005)
        with lock:
            running.pop()

    try:
        for _ in range(5):
            queue.submit(cycle)
    finally:
        queue.shutdown()
    assert overlap == [1] * 5


def test_submit_returns_future_result():
    queue = CycleQueue()
    try:
        future = queue.submit(lambda a, b: a + b, 2, b=3)
        assert future.result(timeout=1) == 5
    finally:
        queue.shutdown()


def test_failing_cycle_does_not_stop_queue():
    queue = CycleQueue()

    def boom():
        raise ValueError("falhou")

    try:
        failed = queue.submit(boom)
        ok = queue.submit(lambda: "ok")
        assert ok.result(timeout=1) == "ok"
        assert isinstance(failed.exception(timeout=1), ValueError)
    finally:
        queue.shutdown()


def test_submit_after_shutdown_is_ignored():
    queue = CycleQueue()
    queue.shutdown()
    assert queue.submit(lambda: None) is None
