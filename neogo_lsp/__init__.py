"""
neogo_lsp - Agente de destaque de sintaxe Go para o editor

Propósito:
    Servidor LSP que mantém as marcas de destaque de buffers Go em sincronia
    com o texto, reclassificando a árvore sintática a cada mudança e enviando
    ao editor apenas as marcas novas e as que deixaram de existir.

Componentes principais:
    - classifier: árvore tree-sitter → FactSet
    - ledger / reconciler: ciclo de vida das marcas e diff entre ciclos
    - driver / surface: chamadas matchaddpos / matchdelete no editor
    - server: handlers pygls

Dependências críticas:
    - pygls: Framework LSP
    - tree-sitter, tree-sitter-go: parser Go

Exemplo de uso:
    python -m neogo_lsp
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
import re


def _read_version_from_pyproject() -> str:
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    try:
        text = pyproject.read_text(encoding="utf-8")
    except OSError:
        return "0.0.0"
    match = re.search(r'(?m)^version = "([^"]+)"\s*$', text)
    return match.group(1) if match else "0.0.0"


try:
    __version__ = _pkg_version("neogo-lsp")
except PackageNotFoundError:
    __version__ = _read_version_from_pyproject()

__all__ = ["server", "classifier", "reconciler", "session"]
