"""
server.py - Servidor LSP principal do neogo usando pygls

Propósito:
    Agente de destaque de sintaxe Go do lado do editor. A cada notificação de
    mudança do buffer, reparseia o texto, classifica a árvore e reconcilia as
    marcas de destaque do editor, emitindo só as criações e remoções
    necessárias.

Componentes principais:
    - NeogoLanguageServer: servidor com sessões por documento e fila de ciclos
    - schedule_cycle: enfileira um ciclo com o texto atual do documento
    - Event handlers: did_open, did_change, did_close, configuração
    - semantic_tokens_full: mesmos fatos em modo pull

Dependências críticas:
    - pygls: Framework LSP
    - neogo_lsp.session: ciclo parse → classificação → reconciliação → host

Exemplo de uso:
    python -m neogo_lsp

Notas de implementação:
    - Comunica via STDIO
    - Um ciclo por notificação, na ordem de entrega (CycleQueue serial)
    - Texto do buffer capturado na thread do servidor no momento da notificação
    - Tratamento robusto de exceções (nunca crasha)
    - Destaque pode ser desabilitado via neogo.highlight.enabled
"""

from __future__ import annotations

import logging
import sys
from concurrent.futures import Future
from typing import Optional

from lsprotocol.types import (
    INITIALIZE,
    SHUTDOWN,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    DidChangeConfigurationParams,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    InitializeParams,
    SemanticTokens,
    SemanticTokensParams,
)
from pygls.server import LanguageServer

from neogo_lsp import __version__
from neogo_lsp.cache import SessionCache
from neogo_lsp.config import HighlightSettings, parse_settings
from neogo_lsp.converters import span_to_dict
from neogo_lsp.cycle_queue import CycleQueue
from neogo_lsp.parser import buffer_lines
from neogo_lsp.semantic_tokens import build_legend, compute_semantic_tokens
from neogo_lsp.session import HighlightSession
from neogo_lsp.spans import sorted_spans
from neogo_lsp.surface import ClientHighlightSurface

# Configuração de logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class NeogoLanguageServer(LanguageServer):
    """
    Servidor LSP de destaque para Go.

    Attributes:
        sessions: Uma HighlightSession (ledger de marcas) por documento aberto
        settings: Configuração atual (seção 'neogo')
        cycles: Fila serial onde os ciclos de reconciliação rodam
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sessions: SessionCache = SessionCache()
        self.settings: HighlightSettings = HighlightSettings()
        self.cycles: CycleQueue = CycleQueue()

    def create_session(self, uri: str) -> HighlightSession:
        return HighlightSession(uri, ClientHighlightSurface(self, uri), self.settings)


# Instância global do servidor
server = NeogoLanguageServer("neogo-lsp", f"v{__version__}")


def _extract_uri(params) -> Optional[str]:
    """Extrai 'uri' de params de comando (dict ou lista com dict)."""
    if isinstance(params, dict):
        return params.get("uri")
    if isinstance(params, list) and len(params) > 0:
        first = params[0]
        if isinstance(first, dict):
            return first.get("uri")
        if isinstance(first, str):
            return first
    return None


def schedule_cycle(ls: NeogoLanguageServer, uri: str) -> Optional[Future]:
    """
    Enfileira um ciclo de destaque para o documento.

    O texto é capturado aqui, na thread do servidor, para que o ciclo veja
    exatamente o buffer da notificação que o disparou.
    """
    if not ls.settings.enabled:
        logger.debug(f"Destaque desabilitado, pulando: {uri}")
        return None

    try:
        doc = ls.workspace.get_text_document(uri)
        lines = buffer_lines(doc.source)
    except Exception as e:
        logger.error(f"Erro ao ler documento {uri}: {e}", exc_info=True)
        return None

    session = ls.sessions.get_or_create(uri, ls.create_session)
    return ls.cycles.submit(session.run_cycle, lambda: lines)


def _apply_settings(ls: NeogoLanguageServer, settings: HighlightSettings) -> None:
    """Aplica nova configuração e limpa/refaz destaques quando enabled muda."""
    old_enabled = ls.settings.enabled
    ls.settings = settings
    for session in ls.sessions.sessions():
        session.update_settings(settings)

    logger.info(
        f"Configuração atualizada: highlight.enabled = {settings.enabled}, "
        f"skipOnSyntaxError = {settings.skip_on_syntax_error}"
    )

    if old_enabled and not settings.enabled:
        logger.info("Destaque desativado, removendo marcas")
        for session in ls.sessions.sessions():
            ls.cycles.submit(session.clear)
    elif not old_enabled and settings.enabled:
        logger.info("Destaque reativado, redestacando documentos abertos")
        for uri in ls.sessions.uris():
            schedule_cycle(ls, uri)


@server.feature(INITIALIZE)
def initialize(ls: NeogoLanguageServer, params: InitializeParams) -> None:
    """Lê a configuração inicial de initializationOptions."""
    options = params.initialization_options
    if options:
        ls.settings = parse_settings(options)
        logger.info(f"Configuração inicial: {ls.settings}")


@server.feature(SHUTDOWN)
def shutdown(ls: NeogoLanguageServer, params) -> None:
    """Encerra a fila de ciclos e descarta todos os ledgers."""
    logger.info("Encerrando: descartando sessões de destaque")
    ls.cycles.shutdown(wait=False)
    ls.sessions.clear()


@server.feature(
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
    build_legend(),
)
def semantic_tokens_full(
    ls: NeogoLanguageServer, params: SemanticTokensParams
) -> SemanticTokens:
    """Retorna tokens semânticos com os mesmos fatos do classificador."""
    uri = params.text_document.uri
    doc = ls.workspace.get_text_document(uri)
    return compute_semantic_tokens(doc.source, uri)


@server.command("neogo/clearHighlights")
def cmd_clear_highlights(ls: NeogoLanguageServer, params) -> dict:
    """Remove todas as marcas de um documento (o ledger segue vivo, vazio)."""
    uri = _extract_uri(params)
    if not uri:
        return {"success": False, "error": "uri não informada"}

    session = ls.sessions.get(uri)
    if session is None:
        return {"success": False, "error": f"Documento sem sessão de destaque: {uri}"}

    ls.cycles.submit(session.clear)
    return {"success": True, "queued": True}


@server.command("neogo/debug/facts")
def debug_facts(ls: NeogoLanguageServer, params) -> dict:
    """
    Debug command: fatos do último ciclo e estado do ledger de um documento.
    """
    uri = _extract_uri(params)
    status = {
        "highlight_enabled": ls.settings.enabled,
        "skip_on_syntax_error": ls.settings.skip_on_syntax_error,
        "sessions": len(ls.sessions.uris()),
    }
    if not uri:
        return {"success": True, "status": status}

    session = ls.sessions.get(uri)
    if session is None:
        return {"success": False, "error": f"Documento sem sessão de destaque: {uri}", "status": status}

    facts = session.last_facts
    try:
        status["ledger_size"] = len(session.ledger)
        status["active_marks"] = session.ledger.active_count()
    except RuntimeError as e:
        # ledger alterado pelo ciclo em andamento
        logger.warning(f"debug/facts: ledger de {uri} em atualização: {e}")
        return {"success": False, "error": "Ciclo em andamento, tente novamente", "status": status}
    status["facts"] = [span_to_dict(span) for span in sorted_spans(facts)]
    return {"success": True, "status": status}


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: NeogoLanguageServer, params: DidOpenTextDocumentParams) -> None:
    """
    Handler para abertura de documento.

    Cria a sessão de destaque e destaca imediatamente.
    """
    uri = params.text_document.uri
    logger.info(f"Documento aberto: {uri}")
    ls.sessions.get_or_create(uri, ls.create_session)
    schedule_cycle(ls, uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: NeogoLanguageServer, params: DidChangeTextDocumentParams) -> None:
    """Handler para mudanças no documento: exatamente um ciclo por notificação."""
    logger.debug(f"Documento modificado: {params.text_document.uri}")
    schedule_cycle(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: NeogoLanguageServer, params: DidCloseTextDocumentParams) -> None:
    """
    Handler para fechamento de documento.

    A sessão termina com o buffer: o ledger é descartado (as marcas do
    editor morrem junto com a janela do buffer).
    """
    uri = params.text_document.uri
    logger.info(f"Documento fechado: {uri}")
    ls.sessions.invalidate(uri)


@server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(
    ls: NeogoLanguageServer, params: DidChangeConfigurationParams
) -> None:
    """
    Handler para mudanças na configuração do workspace.

    Nota: A configuração vem diretamente no params.settings quando o cliente
    sincroniza a seção 'neogo'.
    """
    try:
        _apply_settings(ls, parse_settings(params.settings))
    except Exception as e:
        logger.error(f"Erro ao processar mudança de configuração: {e}", exc_info=True)


def main() -> None:
    """
    Ponto de entrada principal do servidor.

    Inicia servidor LSP em modo STDIO.
    """
    logger.info("Iniciando neogo Language Server...")
    logger.info("Python executable: %s", sys.executable)
    logger.info("neogo-lsp version: %s", __version__)
    server.start_io()


if __name__ == "__main__":
    main()
