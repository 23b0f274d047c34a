"""
cache.py - Sessões de destaque por documento

Propósito:
    Mantém uma HighlightSession (e portanto um MarkLedger) por URI de
    documento aberto, durante toda a vida do buffer no editor.

Componentes principais:
    - CachedSession: sessão com timestamp de criação
    - SessionCache: dicionário de sessões por URI

Notas de implementação:
    - Sessão criada no didOpen (ou no primeiro didChange sem didOpen)
    - Sessão descartada no didClose: o ledger morre com o buffer
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from neogo_lsp.session import HighlightSession

logger = logging.getLogger(__name__)


@dataclass
class CachedSession:
    """Sessão de destaque em cache com timestamp."""

    session: HighlightSession
    timestamp: float = field(default_factory=time.time)


class SessionCache:
    """Cache de HighlightSession por URI."""

    def __init__(self):
        self._cache: dict[str, CachedSession] = {}

    def get(self, uri: str) -> Optional[HighlightSession]:
        """Retorna a sessão do documento, ou None."""
        cached = self._cache.get(uri)
        return cached.session if cached else None

    def get_or_create(
        self, uri: str, factory: Callable[[str], HighlightSession]
    ) -> HighlightSession:
        """Retorna a sessão existente ou cria uma nova com factory(uri)."""
        cached = self._cache.get(uri)
        if cached is None:
            cached = CachedSession(session=factory(uri))
            self._cache[uri] = cached
            logger.info(f"Sessão de destaque criada: {uri}")
        return cached.session

    def invalidate(self, uri: str) -> None:
        """Descarta a sessão (e o ledger) do documento; ciclos pendentes dela viram no-op."""
        cached = self._cache.pop(uri, None)
        if cached:
            cached.session.close()
            logger.info(f"Sessão de destaque descartada: {uri}")

    def uris(self) -> List[str]:
        return list(self._cache)

    def sessions(self) -> List[HighlightSession]:
        return [cached.session for cached in self._cache.values()]

    def clear(self) -> None:
        for cached in self._cache.values():
            cached.session.close()
        self._cache.clear()
