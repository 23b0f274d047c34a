"""
driver.py - Tradução do plano de reconciliação em chamadas ao host

Propósito:
    Executa, uma a uma e na ordem recebida, as operações produzidas pelo
    Reconciler contra a superfície de destaque do editor, e grava no ledger
    o resultado de cada uma (id externo, remoção, falha).

Componentes principais:
    - HighlightSurface: protocolo do host (create_mark / delete_mark)
    - DriveReport: contagens de um ciclo
    - HighlightDriver: aplica operações e atualiza o ledger

Tratamento de erros:
    - create + HostUnavailable → registro fica PENDING_CREATE (retry)
    - create + HostRejected    → registro descartado, não é repetido
    - delete + HostUnavailable → registro volta ao estado anterior (retry)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from neogo_lsp.errors import HostError, HostRejected, HostUnavailable
from neogo_lsp.ledger import MarkLedger
from neogo_lsp.reconciler import CreateMark, DeleteMark, HostOperation
from neogo_lsp.spans import Category

logger = logging.getLogger(__name__)


class HighlightSurface(Protocol):
    def create_mark(self, category: Category, line: int, column: int, length: int) -> int:
        ...

    def delete_mark(self, mark_id: int) -> None:
        ...


@dataclass
class DriveReport:
    created: int = 0
    deleted: int = 0
    failed_creates: int = 0
    failed_deletes: int = 0
    rejected: int = 0

    @property
    def calls(self) -> int:
        return (
            self.created + self.deleted + self.failed_creates
            + self.failed_deletes + self.rejected
        )


class HighlightDriver:
    """Aplica operações de host sem agrupar nem reordenar."""

    def __init__(self, surface: HighlightSurface, debug_commands: bool = False):
        self.surface = surface
        self.debug_commands = debug_commands

    def apply(self, operations: Iterable[HostOperation], ledger: MarkLedger) -> DriveReport:
        report = DriveReport()
        for op in operations:
            if isinstance(op, CreateMark):
                self._create(op, ledger, report)
            elif isinstance(op, DeleteMark):
                self._delete(op, ledger, report)
        return report

    def _create(self, op: CreateMark, ledger: MarkLedger, report: DriveReport) -> None:
        span = op.span
        try:
            mark_id = self.surface.create_mark(
                span.category, span.line, span.column, span.length
            )
        except HostRejected as e:
            logger.warning(f"Host rejeitou marca {span}: {e}")
            ledger.reject(span)
            report.rejected += 1
            return
        except HostUnavailable as e:
            logger.info(f"Host indisponível ao criar {span}, nova tentativa no próximo ciclo: {e}")
            report.failed_creates += 1
            return
        if self.debug_commands:
            logger.info(f"matchaddpos {span} -> {mark_id}")
        ledger.activate(span, mark_id)
        report.created += 1

    def _delete(self, op: DeleteMark, ledger: MarkLedger, report: DriveReport) -> None:
        try:
            self.surface.delete_mark(op.mark_id)
        except HostError as e:
            logger.info(
                f"Host indisponível ao remover marca {op.mark_id} ({op.span}), "
                f"nova tentativa no próximo ciclo: {e}"
            )
            ledger.restore(op.span)
            report.failed_deletes += 1
            return
        if self.debug_commands:
            logger.info(f"matchdelete {op.mark_id} ({op.span})")
        ledger.remove(op.span)
        report.deleted += 1
