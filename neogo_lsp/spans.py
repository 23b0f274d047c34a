"""
spans.py - Modelo de dados dos fatos de destaque

Propósito:
    Valores imutáveis produzidos a cada passada de classificação.

Componentes principais:
    - Category: vocabulário fixo de grupos de destaque
    - SourceSpan: (categoria, linha, coluna, comprimento), chave de identidade
    - FactSet: conjunto imutável de SourceSpan

Notas de implementação:
    - Linha e coluna são 1-based, como no editor
    - Coluna e comprimento contam caracteres (code points) da linha
    - Dois nós da árvore que geram o mesmo span viram um único fato
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List


class Category(Enum):
    """Categorias de destaque; o valor é o nome do grupo de highlight no editor."""

    KEYWORD = "Keyword"
    STATEMENT = "Statement"
    STRING = "String"
    TYPE = "Type"
    CONDITIONAL = "Conditional"
    FUNCTION = "Function"
    COMMENT = "Comment"
    LABEL = "Label"
    REPEAT = "Repeat"

    @property
    def group(self) -> str:
        return self.value


@dataclass(frozen=True)
class SourceSpan:
    category: Category
    line: int
    column: int
    length: int

    def sort_key(self) -> tuple:
        return (self.line, self.column, self.length, self.category.value)

    def __str__(self) -> str:
        return f"{self.category.group}@{self.line}:{self.column}+{self.length}"


FactSet = FrozenSet[SourceSpan]

EMPTY_FACTS: FactSet = frozenset()


def sorted_spans(spans: Iterable[SourceSpan]) -> List[SourceSpan]:
    """Ordena spans por posição no buffer (ordem estável para logs e testes)."""
    return sorted(spans, key=SourceSpan.sort_key)
