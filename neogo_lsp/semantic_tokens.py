"""
semantic_tokens.py - Colorização semântica (modo pull) a partir do FactSet

Propósito:
    Para clientes sem o protocolo de marcas (neogo/matchAddPos), entrega os
    mesmos fatos do classificador via textDocument/semanticTokens/full.

Mapeamento Category → token LSP:
    KEYWORD      → keyword
    STATEMENT    → statement   (customizado)
    STRING       → string
    TYPE         → type
    CONDITIONAL  → conditional (customizado)
    FUNCTION     → function (declaration)
    COMMENT      → comment
    LABEL        → label       (customizado)
    REPEAT       → repeat      (customizado)

Notas de implementação:
    - Tipos customizados usam os nomes dos grupos do editor (@lsp.type.repeat etc.)
    - Tokens são limitados ao fim da linha (LSP não aceita token multilinha)
    - Colunas e comprimentos em unidades UTF-16 (codificação padrão do LSP)
    - Buffer sem árvore utilizável retorna tokens vazios (sem crash)
    - Encoding delta: [deltaLine, deltaStartChar, length, tokenType, tokenModifiers]
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from lsprotocol.types import (
    SemanticTokens,
    SemanticTokensLegend,
    SemanticTokenTypes,
    SemanticTokenModifiers,
)

from neogo_lsp.classifier import classify_result
from neogo_lsp.converters import span_to_range
from neogo_lsp.parser import GoParser, buffer_lines
from neogo_lsp.spans import Category, SourceSpan

logger = logging.getLogger(__name__)

# Tipos de tokens suportados
TOKEN_TYPES: List[str] = [
    SemanticTokenTypes.Keyword.value,   # 0
    "statement",                        # 1
    SemanticTokenTypes.String.value,    # 2
    SemanticTokenTypes.Type.value,      # 3
    "conditional",                      # 4
    SemanticTokenTypes.Function.value,  # 5
    SemanticTokenTypes.Comment.value,   # 6
    "label",                            # 7
    "repeat",                           # 8
]

TOKEN_MODIFIERS: List[str] = [
    SemanticTokenModifiers.Declaration.value,  # 0: nome de função declarada
]


def build_legend() -> SemanticTokensLegend:
    """Cria uma instância fresca do legend para evitar mutações acidentais."""
    return SemanticTokensLegend(
        token_types=TOKEN_TYPES,
        token_modifiers=TOKEN_MODIFIERS,
    )


_TOKEN_INDEX = {
    Category.KEYWORD: 0,
    Category.STATEMENT: 1,
    Category.STRING: 2,
    Category.TYPE: 3,
    Category.CONDITIONAL: 4,
    Category.FUNCTION: 5,
    Category.COMMENT: 6,
    Category.LABEL: 7,
    Category.REPEAT: 8,
}

# Modifier bitmask
_MOD_DECLARATION = 1 << 0

# RawToken: (line_0based, col_0based, length, token_type_index, modifier_bitmask)
RawToken = Tuple[int, int, int, int, int]


def compute_semantic_tokens(
    source: str, uri: str, parser: Optional[GoParser] = None
) -> SemanticTokens:
    """Computa tokens semânticos para um buffer Go."""
    parser = parser or GoParser()
    lines = buffer_lines(source)
    try:
        result = parser.parse(lines)
    except Exception as e:
        logger.warning(f"Semantic tokens: parse falhou para {uri}: {e}")
        return SemanticTokens(data=[])
    facts = classify_result(result)
    return SemanticTokens(data=_encode_deltas(_facts_to_tokens(facts, lines)))


def _utf16_len(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _facts_to_tokens(facts: Iterable[SourceSpan], lines: List[str]) -> List[RawToken]:
    """
    Converte fatos (1-based, code points) em tokens LSP (0-based, UTF-16)
    limitados à própria linha.
    """
    tokens: List[RawToken] = []
    for span in facts:
        line = span.line - 1
        if line < 0 or line >= len(lines):
            continue
        text = lines[line]
        rng = span_to_range(span, len(text))
        start, end = rng.start.character, rng.end.character
        length = _utf16_len(text[start:end])
        if length <= 0:
            continue
        modifiers = _MOD_DECLARATION if span.category is Category.FUNCTION else 0
        tokens.append(
            (line, _utf16_len(text[:start]), length, _TOKEN_INDEX[span.category], modifiers)
        )
    return tokens


def _encode_deltas(tokens: List[RawToken]) -> List[int]:
    """
    Ordena tokens por posição e codifica em formato delta LSP.

    Formato: [deltaLine, deltaStartChar, length, tokenType, tokenModifiers]
    Cada token é relativo ao anterior.
    """
    if not tokens:
        return []

    # Ordenar por (line, col)
    tokens.sort(key=lambda t: (t[0], t[1]))

    data: List[int] = []
    prev_line = 0
    prev_col = 0

    for line, col, length, token_type, modifiers in tokens:
        delta_line = line - prev_line
        delta_col = col - prev_col if delta_line == 0 else col

        data.extend([delta_line, delta_col, length, token_type, modifiers])

        prev_line = line
        prev_col = col

    return data
