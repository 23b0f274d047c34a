"""
ledger.py - Ledger de marcas de destaque de um buffer

Propósito:
    Mapeia cada SourceSpan para o registro de ciclo de vida da marca
    correspondente no editor. É o único estado mutável compartilhado entre
    ciclos e pertence exclusivamente ao ciclo de reconciliação.

Componentes principais:
    - MarkState: PENDING_CREATE → ACTIVE → PENDING_DELETE
    - MarkRecord: id externo (opaco) + estado + último ciclo observado
    - MarkLedger: dicionário span → MarkRecord, com geração de ciclo

Notas de implementação:
    - "Observado neste ciclo" = record.seen == ledger.generation
    - Chaves rejeitadas pelo host ficam fora do ledger enquanto o fato persistir
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple

from neogo_lsp.spans import SourceSpan, sorted_spans

logger = logging.getLogger(__name__)


class MarkState(Enum):
    PENDING_CREATE = "pending_create"
    ACTIVE = "active"
    PENDING_DELETE = "pending_delete"


@dataclass
class MarkRecord:
    state: MarkState = MarkState.PENDING_CREATE
    mark_id: Optional[int] = None
    seen: int = 0


class MarkLedger:
    """Ledger de marcas de um único buffer."""

    def __init__(self):
        self._records: Dict[SourceSpan, MarkRecord] = {}
        self._rejected: Set[SourceSpan] = set()
        self._rejected_seen: Set[SourceSpan] = set()
        self.generation: int = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, span: SourceSpan) -> bool:
        return span in self._records

    def __iter__(self) -> Iterator[SourceSpan]:
        return iter(self._records)

    def get(self, span: SourceSpan) -> Optional[MarkRecord]:
        return self._records.get(span)

    def items(self) -> List[Tuple[SourceSpan, MarkRecord]]:
        return [(span, self._records[span]) for span in sorted_spans(self._records)]

    def begin_cycle(self) -> int:
        """Abre um novo ciclo; registros não observados nele serão aposentados."""
        self.generation += 1
        self._rejected_seen = set()
        return self.generation

    def observe(self, span: SourceSpan) -> Optional[MarkRecord]:
        """
        Registra que o fato foi visto neste ciclo.

        Fato novo entra como PENDING_CREATE; fato conhecido é apenas marcado,
        qualquer que seja o estado. Fato rejeitado pelo host não volta ao ledger.
        """
        if span in self._rejected:
            self._rejected_seen.add(span)
            return None
        record = self._records.get(span)
        if record is None:
            record = MarkRecord()
            self._records[span] = record
        elif record.state is MarkState.PENDING_DELETE:
            record.state = MarkState.ACTIVE
        record.seen = self.generation
        return record

    def pending_creates(self) -> List[SourceSpan]:
        return sorted_spans(
            span for span, record in self._records.items()
            if record.state is MarkState.PENDING_CREATE and record.seen == self.generation
        )

    def unobserved(self) -> List[SourceSpan]:
        return sorted_spans(
            span for span, record in self._records.items()
            if record.seen != self.generation
        )

    def forget_stale_rejections(self) -> None:
        """Esquece rejeições cujo fato sumiu neste ciclo (poderá ser tentado de novo)."""
        self._rejected &= self._rejected_seen

    def activate(self, span: SourceSpan, mark_id: int) -> None:
        record = self._records[span]
        record.mark_id = mark_id
        record.state = MarkState.ACTIVE

    def retire(self, span: SourceSpan) -> MarkRecord:
        record = self._records[span]
        record.state = MarkState.PENDING_DELETE
        return record

    def restore(self, span: SourceSpan) -> None:
        """Volta ao estado anterior a uma remoção que falhou."""
        record = self._records[span]
        record.state = MarkState.ACTIVE if record.mark_id is not None else MarkState.PENDING_CREATE

    def remove(self, span: SourceSpan) -> None:
        self._records.pop(span, None)

    def reject(self, span: SourceSpan) -> None:
        self._records.pop(span, None)
        self._rejected.add(span)
        self._rejected_seen.add(span)

    def active_count(self) -> int:
        return sum(1 for r in self._records.values() if r.state is MarkState.ACTIVE)

    def clear(self) -> None:
        self._records.clear()
        self._rejected.clear()
        self._rejected_seen.clear()
