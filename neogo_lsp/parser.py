"""
parser.py - Parser Go baseado em tree-sitter

Propósito:
    Colaborador externo do motor: transforma o texto do buffer em árvore
    sintática. Contrato: parse(linhas) -> ParseResult(tree, success).

Dependências críticas:
    - tree_sitter: runtime do parser
    - tree_sitter_go: gramática Go

Notas de implementação:
    - tree-sitter sempre devolve uma árvore, mesmo com erros (nós ERROR/MISSING)
    - Sem package clause válida não há árvore utilizável: mesmo critério do
      go/parser, que devolve arquivo nulo quando a package clause falha
    - Com erros em outras partes, a árvore parcial é classificada normalmente
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

import tree_sitter_go as tsgo
from tree_sitter import Language, Parser

from neogo_lsp.errors import ParseFailure

logger = logging.getLogger(__name__)

GO_LANGUAGE = Language(tsgo.language())

def buffer_lines(source: str) -> List[str]:
    """Divide o texto em linhas do editor: só \n quebra linha (\r\n aceito)."""
    return [line[:-1] if line.endswith("\r") else line for line in source.split("\n")]


@dataclass
class ParseResult:
    """Resultado de um parse; tree é None quando não há árvore utilizável."""

    tree: Any  # tree_sitter.Tree
    success: bool
    source: bytes = b""
    line_bytes: List[bytes] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def root_node(self):
        return self.tree.root_node if self.tree is not None else None


def _first_declaration(root) -> Optional[Any]:
    for child in root.children:
        if child.type != "comment":
            return child
    return None


def _package_clause_error(root) -> Optional[str]:
    """Retorna a descrição do problema na package clause, ou None se ela é válida."""
    first = _first_declaration(root)
    if first is None:
        return "buffer sem package clause"
    if first.type != "package_clause":
        return f"esperado 'package', encontrado {first.type}"
    if first.has_error:
        return "package clause malformada"
    return None


class GoParser:
    """Parser Go reutilizável entre ciclos (uma instância por sessão)."""

    def __init__(self):
        self._parser = Parser(GO_LANGUAGE)

    def parse(self, lines: Sequence[str]) -> ParseResult:
        source = "\n".join(lines).encode("utf-8")
        line_bytes = source.split(b"\n")
        try:
            tree = self._parser.parse(source)
        except (ValueError, RuntimeError) as e:
            logger.warning(f"tree-sitter falhou ao parsear buffer: {e}")
            return ParseResult(
                tree=None, success=False, source=source, line_bytes=line_bytes, error=str(e)
            )

        problem = _package_clause_error(tree.root_node)
        if problem:
            return ParseResult(
                tree=None, success=False, source=source, line_bytes=line_bytes, error=problem
            )

        return ParseResult(
            tree=tree,
            success=not tree.root_node.has_error,
            source=source,
            line_bytes=line_bytes,
        )

    def parse_or_fail(self, lines: Sequence[str], strict: bool = False) -> ParseResult:
        """
        Parse que levanta ParseFailure quando não há árvore para classificar.

        Args:
            lines: Linhas do buffer
            strict: Se True, qualquer erro de sintaxe conta como ParseFailure

        Raises:
            ParseFailure: Sem árvore utilizável
        """
        result = self.parse(lines)
        if result.tree is None:
            raise ParseFailure(result.error or "parse sem árvore")
        if strict and not result.success:
            raise ParseFailure("erro de sintaxe no buffer")
        return result
