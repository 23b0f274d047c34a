"""
reconciler.py - Diff entre o FactSet novo e o ledger de marcas

Propósito:
    Executa as três passadas de um ciclo (Observe, Create, Retire) sobre o
    ledger e devolve a sequência ordenada de operações para o host.

Componentes principais:
    - CreateMark / DeleteMark: operações de host planejadas
    - Reconciler: aplica as passadas e produz o plano

Notas de implementação:
    - Fato observado em todo ciclo nunca é reenviado ao host
    - Registro sem id externo (create nunca concluído) sai do ledger sem
      chamada ao host
    - Ordem do plano: remoções primeiro, depois criações, cada grupo por posição
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Union

from neogo_lsp.ledger import MarkLedger
from neogo_lsp.spans import SourceSpan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreateMark:
    span: SourceSpan


@dataclass(frozen=True)
class DeleteMark:
    span: SourceSpan
    mark_id: int


HostOperation = Union[CreateMark, DeleteMark]


class Reconciler:
    """Reconcilia FactSets sucessivos contra um MarkLedger."""

    def __init__(self, ledger: MarkLedger):
        self.ledger = ledger

    def observe(self, facts: Iterable[SourceSpan]) -> int:
        """Passada 1: insere fatos novos e marca os conhecidos como observados."""
        self.ledger.begin_cycle()
        count = 0
        for span in facts:
            self.ledger.observe(span)
            count += 1
        self.ledger.forget_stale_rejections()
        return count

    def plan_creates(self) -> List[CreateMark]:
        """Passada 2: todo PENDING_CREATE observado vira uma criação."""
        return [CreateMark(span) for span in self.ledger.pending_creates()]

    def plan_retirements(self) -> List[DeleteMark]:
        """Passada 3: todo registro não observado é aposentado."""
        deletes: List[DeleteMark] = []
        for span in self.ledger.unobserved():
            record = self.ledger.retire(span)
            if record.mark_id is None:
                # nunca chegou ao host; nada a remover lá
                self.ledger.remove(span)
                continue
            deletes.append(DeleteMark(span, record.mark_id))
        return deletes

    def reconcile(self, facts: Iterable[SourceSpan]) -> List[HostOperation]:
        """
        Executa um ciclo completo de reconciliação sobre o ledger.

        Returns:
            Operações de host na ordem em que devem ser emitidas
        """
        observed = self.observe(facts)
        creates = self.plan_creates()
        deletes = self.plan_retirements()
        logger.debug(
            f"Reconciliação: {observed} fatos, {len(creates)} criações, "
            f"{len(deletes)} remoções"
        )
        return [*deletes, *creates]
