"""
classifier.py - Classificação de nós da árvore em fatos de destaque

Propósito:
    Percorre a árvore tree-sitter de um buffer Go e produz o FactSet:
    o conjunto de (categoria, linha, coluna, comprimento) a destacar.
    Função pura da árvore; não toca no ledger nem no host.

Mapeamento nó tree-sitter → categoria:
    package_clause, import_declaration, go/defer  → Statement
    var/const/type, struct/interface, return,
    break/continue/goto/fallthrough, func         → Keyword
    for, range                                    → Repeat
    if, switch, select                            → Conditional
    case, default                                 → Label
    nome de função/método                         → Function
    literais string                               → String
    comentários                                   → Comment
    tipos em posição de tipo (campos, parâmetros,
    retorno, var/const), chan, map                → Type

Notas de implementação:
    - Despacho por tabela (kind → regra); adicionar categoria é mudança de dados
    - Spans de palavra-chave ficam no token da palavra-chave; se a recuperação
      de erro do tree-sitter removeu o token, o nó não gera fato
    - tree-sitter reporta colunas em bytes; convertemos para caracteres
    - Percurso iterativo (pilha explícita) para não estourar recursão
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from neogo_lsp.spans import Category, FactSet, SourceSpan

logger = logging.getLogger(__name__)

# kind → (categoria, token da palavra-chave destacado)
KEYWORD_RULES: Dict[str, Tuple[Category, str]] = {
    "package_clause": (Category.STATEMENT, "package"),
    "import_declaration": (Category.STATEMENT, "import"),
    "var_declaration": (Category.KEYWORD, "var"),
    "const_declaration": (Category.KEYWORD, "const"),
    "type_declaration": (Category.KEYWORD, "type"),
    "struct_type": (Category.KEYWORD, "struct"),
    "interface_type": (Category.KEYWORD, "interface"),
    "return_statement": (Category.KEYWORD, "return"),
    "break_statement": (Category.KEYWORD, "break"),
    "continue_statement": (Category.KEYWORD, "continue"),
    "goto_statement": (Category.KEYWORD, "goto"),
    "fallthrough_statement": (Category.KEYWORD, "fallthrough"),
    "for_statement": (Category.REPEAT, "for"),
    "range_clause": (Category.REPEAT, "range"),
    "go_statement": (Category.STATEMENT, "go"),
    "defer_statement": (Category.STATEMENT, "defer"),
    "function_declaration": (Category.KEYWORD, "func"),
    "method_declaration": (Category.KEYWORD, "func"),
    "expression_switch_statement": (Category.CONDITIONAL, "switch"),
    "type_switch_statement": (Category.CONDITIONAL, "switch"),
    "select_statement": (Category.CONDITIONAL, "select"),
    "expression_case": (Category.LABEL, "case"),
    "type_case": (Category.LABEL, "case"),
    "communication_case": (Category.LABEL, "case"),
    "default_case": (Category.LABEL, "default"),
    "if_statement": (Category.CONDITIONAL, "if"),
}

# comprimento fixo do destaque, quando difere do token da palavra-chave
KEYWORD_LENGTHS: Dict[str, int] = {
    "default_case": 4,
}

# kind → categoria; o span cobre o texto inteiro do nó
TOKEN_RULES: Dict[str, Category] = {
    "interpreted_string_literal": Category.STRING,
    "raw_string_literal": Category.STRING,
    "comment": Category.COMMENT,
}

# kind → categoria do campo "name"
NAME_RULES: Dict[str, Category] = {
    "function_declaration": Category.FUNCTION,
    "method_declaration": Category.FUNCTION,
}

# kind → campos cujo conteúdo está em posição de tipo
TYPE_FIELDS: Dict[str, Tuple[str, ...]] = {
    "parameter_declaration": ("type",),
    "variadic_parameter_declaration": ("type",),
    "field_declaration": ("type",),
    "var_spec": ("type",),
    "const_spec": ("type",),
    "function_declaration": ("result",),
    "method_declaration": ("result",),
    "func_literal": ("result",),
    "function_type": ("result",),
    "method_elem": ("result",),
    "method_spec": ("result",),
}

# tipos compostos: kind → (categoria, palavra-chave, campos com tipos aninhados)
COMPOSITE_TYPE_RULES: Dict[str, Tuple[Category, str, Tuple[str, ...]]] = {
    "function_type": (Category.KEYWORD, "func", ()),
    "channel_type": (Category.TYPE, "chan", ("value",)),
    "map_type": (Category.TYPE, "map", ("key", "value")),
}

# tipos que só embrulham outro tipo: kind → campo (None = filhos nomeados)
WRAPPER_TYPES: Dict[str, Optional[str]] = {
    "pointer_type": None,
    "parenthesized_type": None,
    "slice_type": "element",
    "array_type": "element",
    "generic_type": "type",
}


class _Emitter:
    """Converte posições tree-sitter (bytes, 0-based) em SourceSpan (chars, 1-based)."""

    def __init__(self, line_bytes: Sequence[bytes]):
        self._lines = line_bytes
        self.facts: Set[SourceSpan] = set()

    def _column(self, row: int, byte_col: int) -> int:
        if row >= len(self._lines):
            return byte_col + 1
        prefix = self._lines[row][:byte_col]
        return len(prefix.decode("utf-8", errors="replace")) + 1

    def emit(self, category: Category, node, length: int) -> None:
        if length <= 0:
            return
        row, byte_col = node.start_point
        self.facts.add(
            SourceSpan(category, row + 1, self._column(row, byte_col), length)
        )

    def emit_text(self, category: Category, node) -> None:
        if node is None or node.is_missing:
            return
        text = node.text or b""
        self.emit(category, node, len(text.decode("utf-8", errors="replace")))

    def emit_keyword(
        self, category: Category, node, keyword: str, length: Optional[int] = None
    ) -> None:
        token = _keyword_child(node, keyword)
        if token is not None:
            self.emit(category, token, length or len(keyword))


def _keyword_child(node, keyword: str):
    for child in node.children:
        if child.type == keyword and not child.is_named and not child.is_missing:
            return child
    return None


def _classify_type(node, out: _Emitter) -> None:
    """Classifica uma expressão de tipo e, recursivamente, seus tipos aninhados."""
    stack = [node]
    while stack:
        current = stack.pop()
        if current is None:
            continue
        kind = current.type
        if kind == "type_identifier":
            out.emit_text(Category.TYPE, current)
        elif kind in COMPOSITE_TYPE_RULES:
            category, keyword, fields = COMPOSITE_TYPE_RULES[kind]
            out.emit_keyword(category, current, keyword)
            for name in reversed(fields):
                stack.append(current.child_by_field_name(name))
        elif kind in WRAPPER_TYPES:
            field_name = WRAPPER_TYPES[kind]
            if field_name is None:
                stack.extend(reversed(current.named_children))
            else:
                stack.append(current.child_by_field_name(field_name))


def _classify_node(node, out: _Emitter) -> None:
    kind = node.type

    rule = KEYWORD_RULES.get(kind)
    if rule is not None:
        out.emit_keyword(rule[0], node, rule[1], KEYWORD_LENGTHS.get(kind))

    category = TOKEN_RULES.get(kind)
    if category is not None:
        out.emit_text(category, node)

    category = NAME_RULES.get(kind)
    if category is not None:
        out.emit_text(category, node.child_by_field_name("name"))

    for field_name in TYPE_FIELDS.get(kind, ()):
        target = node.child_by_field_name(field_name)
        # resultado nomeado/múltiplo é parameter_list; o percurso cuida dele
        if target is not None and target.type != "parameter_list":
            _classify_type(target, out)


def classify_tree(root, line_bytes: Sequence[bytes]) -> FactSet:
    """
    Produz o FactSet de uma árvore tree-sitter.

    Args:
        root: Nó raiz (source_file)
        line_bytes: Linhas do buffer em UTF-8, usadas para converter colunas

    Returns:
        frozenset de SourceSpan (duplicatas colapsam)
    """
    out = _Emitter(line_bytes)
    stack: List = [root]
    while stack:
        node = stack.pop()
        _classify_node(node, out)
        stack.extend(reversed(node.children))
    return frozenset(out.facts)


def classify_result(result) -> FactSet:
    """Classifica um ParseResult; sem árvore não há fatos."""
    if result is None or result.tree is None:
        return frozenset()
    return classify_tree(result.tree.root_node, result.line_bytes)


def classify_source(
    source: str, parse: Optional[Callable[[Sequence[str]], object]] = None
) -> FactSet:
    """Atalho: parse + classificação de um texto completo."""
    from neogo_lsp.parser import GoParser, buffer_lines

    if parse is None:
        parse = GoParser().parse
    return classify_result(parse(buffer_lines(source)))
