"""
session.py - Sessão de destaque de um buffer e o ciclo completo

Propósito:
    Orquestra um ciclo disparado por uma notificação de mudança do buffer:
    lê o texto → parse → classificação → reconciliação → chamadas ao host.

Componentes principais:
    - CycleReport: resultado observável de um ciclo
    - HighlightSession: ledger + reconciler + driver + parser de um buffer

Notas de implementação:
    - run_cycle nunca levanta exceção; falhas ficam no relatório e no ledger
    - ParseFailure deixa o ledger intocado (sem flicker em erro transitório)
    - Não é reentrante: no máximo um ciclo por sessão em andamento
    - Sessão encerrada (didClose) não fala mais com o host
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from neogo_lsp.classifier import classify_result
from neogo_lsp.config import HighlightSettings
from neogo_lsp.driver import DriveReport, HighlightDriver, HighlightSurface
from neogo_lsp.errors import ParseFailure
from neogo_lsp.ledger import MarkLedger
from neogo_lsp.parser import GoParser
from neogo_lsp.reconciler import Reconciler
from neogo_lsp.spans import EMPTY_FACTS, FactSet

logger = logging.getLogger(__name__)

SourceProvider = Callable[[], Sequence[str]]


@dataclass
class CycleReport:
    uri: str
    skipped: bool = False
    reason: Optional[str] = None
    facts: int = 0
    syntax_errors: bool = False
    marks: int = 0
    drive: DriveReport = field(default_factory=DriveReport)


class HighlightSession:
    """
    Estado de destaque de um único buffer.

    Attributes:
        ledger: Marcas atualmente conhecidas no host
        last_facts: FactSet do último ciclo classificado (para semantic tokens/debug)
    """

    def __init__(
        self,
        uri: str,
        surface: HighlightSurface,
        settings: Optional[HighlightSettings] = None,
        parser: Optional[GoParser] = None,
    ):
        self.uri = uri
        self.settings = settings or HighlightSettings()
        self.parser = parser or GoParser()
        self.ledger = MarkLedger()
        self.reconciler = Reconciler(self.ledger)
        self.driver = HighlightDriver(surface, debug_commands=self.settings.debug_commands)
        self.last_facts: FactSet = EMPTY_FACTS
        self.closed = False

    def close(self) -> None:
        """Encerra a sessão; ciclos ainda na fila viram no-op."""
        self.closed = True

    def update_settings(self, settings: HighlightSettings) -> None:
        self.settings = settings
        self.driver.debug_commands = settings.debug_commands

    def run_cycle(self, source_provider: SourceProvider) -> CycleReport:
        """
        Executa um ciclo completo para o texto atual do buffer.

        Fluxo:
            1. Obtém as linhas do buffer (uma vez por ciclo)
            2. Parse; sem árvore utilizável o ciclo termina sem tocar no ledger
            3. Classifica a árvore em FactSet
            4. Reconcilia e aplica as operações no host
        """
        report = CycleReport(uri=self.uri)
        if self.closed:
            return self._skip(report, "sessão encerrada")
        try:
            lines = source_provider()
            result = self.parser.parse_or_fail(
                lines, strict=self.settings.skip_on_syntax_error
            )
        except ParseFailure as e:
            logger.info(f"Parse falhou para {self.uri}, destaques mantidos: {e}")
            return self._skip(report, str(e))
        except Exception as e:
            logger.error(f"Erro ao obter/parsear {self.uri}: {e}", exc_info=True)
            return self._skip(report, str(e))

        if self.settings.debug_syntax_tree:
            logger.info(f"Árvore sintática de {self.uri}:\n{result.root_node}")

        report.syntax_errors = not result.success
        return self.apply_facts(classify_result(result), report)

    def apply_facts(self, facts: FactSet, report: Optional[CycleReport] = None) -> CycleReport:
        """Reconcilia um FactSet já calculado contra o ledger e aciona o host."""
        if report is None:
            report = CycleReport(uri=self.uri)
        if self.closed:
            return self._skip(report, "sessão encerrada")
        report.facts = len(facts)
        try:
            operations = self.reconciler.reconcile(facts)
            report.drive = self.driver.apply(operations, self.ledger)
            self.last_facts = facts
        except Exception as e:
            logger.error(f"Erro na reconciliação de {self.uri}: {e}", exc_info=True)
        report.marks = len(self.ledger)

        drive = report.drive
        if drive.calls:
            logger.info(
                f"Ciclo {self.uri}: {report.facts} fatos, +{drive.created} -{drive.deleted} "
                f"({drive.failed_creates + drive.failed_deletes} falhas, "
                f"{drive.rejected} rejeitadas), {report.marks} marcas"
            )
        else:
            logger.debug(f"Ciclo {self.uri}: {report.facts} fatos, nenhuma mudança")
        return report

    def _skip(self, report: CycleReport, reason: str) -> CycleReport:
        logger.debug(f"Ciclo ignorado para {self.uri}: {reason}")
        report.skipped = True
        report.reason = reason
        report.marks = len(self.ledger)
        return report

    def clear(self) -> CycleReport:
        """Remove todas as marcas do buffer no host."""
        return self.apply_facts(EMPTY_FACTS)
