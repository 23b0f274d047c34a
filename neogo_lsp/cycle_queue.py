"""
cycle_queue.py - Fila serial de ciclos de destaque

Propósito:
    Garante no máximo um ciclo em andamento e execução na ordem de entrega
    das notificações. Os ciclos rodam fora da thread do event loop do pygls,
    porque cada chamada ao host espera a resposta do cliente, e essa resposta
    só chega pelo próprio event loop.

Componentes principais:
    - CycleQueue: ThreadPoolExecutor de um único worker

Exemplo de uso:
    queue = CycleQueue()
    try:
        queue.submit(session.run_cycle, lambda: lines)
    finally:
        queue.shutdown()
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CycleQueue:
    """Executor serial (FIFO) para ciclos de reconciliação."""

    def __init__(self):
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="neogo-cycle")
        self._enabled = True

    def submit(self, fn: Callable, *args, **kwargs) -> Optional[Future]:
        """
        Enfileira um ciclo.

        Returns:
            Future do ciclo, ou None se a fila já foi encerrada
        """
        if not self._enabled:
            logger.debug("Fila de ciclos encerrada, notificação ignorada")
            return None
        future = self._executor.submit(fn, *args, **kwargs)
        future.add_done_callback(_log_failure)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._enabled = False
        self._executor.shutdown(wait=wait)


def _log_failure(future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error(f"Ciclo de destaque falhou: {error}", exc_info=error)
