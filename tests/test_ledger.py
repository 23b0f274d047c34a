"""
test_ledger.py - Testes unitários para MarkLedger

Propósito:
    Validar as transições de estado dos registros de marca e a noção de
    "observado neste ciclo".
"""

from __future__ import annotations

from neogo_lsp.ledger import MarkLedger, MarkRecord, MarkState
from neogo_lsp.spans import Category, SourceSpan

STR = SourceSpan(Category.STRING, 3, 5, 7)
KW = SourceSpan(Category.KEYWORD, 1, 1, 3)


def test_new_ledger_is_empty():
    ledger = MarkLedger()
    assert len(ledger) == 0
    assert ledger.active_count() == 0
    assert ledger.get(STR) is None


def test_observe_inserts_pending_create():
    ledger = MarkLedger()
    ledger.begin_cycle()
    record = ledger.observe(STR)

    assert STR in ledger
    assert record.state is MarkState.PENDING_CREATE
    assert record.mark_id is None
    assert ledger.get(STR).seen == ledger.generation
    assert ledger.pending_creates() == [STR]


def test_activate_stores_id():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.activate(STR, 42)

    record = ledger.get(STR)
    assert record.state is MarkState.ACTIVE
    assert record.mark_id == 42
    assert ledger.pending_creates() == []
    assert ledger.active_count() == 1


def test_observe_existing_keeps_record():
    """Reobservar um registro ACTIVE não muda id nem estado."""
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.activate(STR, 7)

    ledger.begin_cycle()
    assert ledger.get(STR).seen != ledger.generation
    ledger.observe(STR)
    assert ledger.get(STR).seen == ledger.generation
    assert ledger.get(STR).mark_id == 7
    assert ledger.get(STR).state is MarkState.ACTIVE


def test_unobserved_after_new_cycle():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.observe(KW)

    ledger.begin_cycle()
    ledger.observe(KW)
    assert ledger.unobserved() == [STR]


def test_retire_and_remove():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.activate(STR, 1)

    record = ledger.retire(STR)
    assert record.state is MarkState.PENDING_DELETE
    ledger.remove(STR)
    assert STR not in ledger


def test_restore_after_failed_delete():
    """Remoção falhou: volta a ACTIVE com o mesmo id."""
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.activate(STR, 9)
    ledger.retire(STR)

    ledger.restore(STR)
    assert ledger.get(STR).state is MarkState.ACTIVE
    assert ledger.get(STR).mark_id == 9


def test_observe_pending_delete_reactivates():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.activate(STR, 3)
    ledger.retire(STR)

    ledger.begin_cycle()
    ledger.observe(STR)
    assert ledger.get(STR).state is MarkState.ACTIVE


def test_rejected_key_is_not_reinserted():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.reject(STR)
    assert STR not in ledger

    ledger.begin_cycle()
    assert ledger.observe(STR) is None
    ledger.forget_stale_rejections()
    assert STR not in ledger
    ledger.begin_cycle()
    assert ledger.observe(STR) is None


def test_rejection_forgotten_when_fact_disappears():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.reject(STR)

    ledger.begin_cycle()
    ledger.forget_stale_rejections()

    ledger.begin_cycle()
    ledger.observe(STR)
    assert STR in ledger


def test_items_sorted_by_position():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.observe(KW)
    assert [span for span, _ in ledger.items()] == [KW, STR]


def test_clear():
    ledger = MarkLedger()
    ledger.begin_cycle()
    ledger.observe(STR)
    ledger.reject(KW)
    ledger.clear()
    assert len(ledger) == 0
    ledger.begin_cycle()
    assert ledger.observe(KW) is not None


def test_mark_record_defaults():
    record = MarkRecord()
    assert record.state is MarkState.PENDING_CREATE
    assert record.mark_id is None
