"""
converters.py - Conversão entre SourceSpan e tipos LSP/host

Propósito:
    Traduz os spans do motor (1-based, caracteres) para as coordenadas do
    protocolo LSP (0-based) e para o payload das requisições de marca.

Componentes principais:
    - span_to_range: SourceSpan → Range (limitado à linha)
    - mark_params: payload de neogo/matchAddPos
    - delete_params: payload de neogo/matchDelete
    - span_to_dict: forma serializável para comandos de debug

Notas de implementação:
    - Linhas/colunas do motor são 1-based; LSP é 0-based
    - Ranges nunca atravessam linhas: o destaque de uma marca é de uma linha só
"""

from __future__ import annotations

from typing import Optional

from lsprotocol.types import Position, Range

from neogo_lsp.spans import Category, SourceSpan


def span_to_range(span: SourceSpan, line_length: Optional[int] = None) -> Range:
    """
    Converte SourceSpan em Range LSP.

    Args:
        span: Span 1-based
        line_length: Comprimento da linha em caracteres; se informado, o fim
                     do range é limitado ao fim da linha
    """
    line = max(span.line - 1, 0)
    start = max(span.column - 1, 0)
    end = start + span.length
    if line_length is not None:
        end = min(end, max(line_length, start))
    return Range(
        start=Position(line=line, character=start),
        end=Position(line=line, character=end),
    )


def mark_params(uri: str, category: Category, line: int, column: int, length: int) -> dict:
    return {
        "uri": uri,
        "group": category.group,
        "line": line,
        "column": column,
        "length": length,
    }


def delete_params(uri: str, mark_id: int) -> dict:
    return {"uri": uri, "id": mark_id}


def span_to_dict(span: SourceSpan) -> dict:
    return {
        "category": span.category.group,
        "line": span.line,
        "column": span.column,
        "length": span.length,
    }
