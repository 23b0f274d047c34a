"""
surface.py - Superfície de destaque do editor via requisições LSP customizadas

Propósito:
    Implementa HighlightSurface sobre a conexão pygls com o cliente. O plugin
    do editor responde às requisições executando matchaddpos/matchdelete.

Requisições (servidor → cliente):
    neogo/matchAddPos  {uri, group, line, column, length} → id (int)
    neogo/matchDelete  {uri, id}                          → null

Tratamento de erros:
    - Timeout, cancelamento ou transporte fechado → HostUnavailable
    - Resposta de erro JSON-RPC no create, ou id inválido → HostRejected
    - Qualquer falha no delete → HostUnavailable

Notas de implementação:
    - Chamadas bloqueantes: só podem rodar fora do event loop (ver cycle_queue)
"""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError
from concurrent.futures import TimeoutError as FutureTimeout

from pygls.exceptions import JsonRpcException

from neogo_lsp.converters import delete_params, mark_params
from neogo_lsp.errors import HostRejected, HostUnavailable
from neogo_lsp.spans import Category

logger = logging.getLogger(__name__)

MATCH_ADD_POS = "neogo/matchAddPos"
MATCH_DELETE = "neogo/matchDelete"

DEFAULT_TIMEOUT = 2.0


def _coerce_mark_id(result):
    """O id chega como int (ou float via JSON); -1 é a recusa do matchaddpos."""
    if isinstance(result, bool):
        return None
    if isinstance(result, float) and result.is_integer():
        result = int(result)
    if isinstance(result, int) and result >= 0:
        return result
    return None


class ClientHighlightSurface:
    """HighlightSurface de um documento, falando com o cliente do servidor ls."""

    def __init__(self, ls, uri: str):
        self._ls = ls
        self.uri = uri

    @property
    def timeout(self) -> float:
        settings = getattr(self._ls, "settings", None)
        return getattr(settings, "request_timeout", DEFAULT_TIMEOUT)

    def _request(self, method: str, params: dict):
        try:
            future = self._ls.lsp.send_request(method, params)
        except (OSError, RuntimeError) as e:
            raise HostUnavailable(f"{method}: transporte indisponível: {e}") from e
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as e:
            raise HostUnavailable(f"{method}: sem resposta em {self.timeout}s") from e
        except CancelledError as e:
            raise HostUnavailable(f"{method}: requisição cancelada") from e

    def create_mark(self, category: Category, line: int, column: int, length: int) -> int:
        params = mark_params(self.uri, category, line, column, length)
        try:
            result = self._request(MATCH_ADD_POS, params)
        except JsonRpcException as e:
            raise HostRejected(f"{MATCH_ADD_POS} recusado: {e}") from e

        mark_id = _coerce_mark_id(result)
        if mark_id is None:
            raise HostRejected(f"{MATCH_ADD_POS} devolveu id inválido: {result!r}")
        return mark_id

    def delete_mark(self, mark_id: int) -> None:
        try:
            self._request(MATCH_DELETE, delete_params(self.uri, mark_id))
        except JsonRpcException as e:
            raise HostUnavailable(f"{MATCH_DELETE} falhou: {e}") from e
