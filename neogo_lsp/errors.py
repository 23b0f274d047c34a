"""
errors.py - Taxonomia de erros do ciclo de destaque

Propósito:
    Define as exceções que o motor de reconciliação reconhece. Nenhuma delas
    é fatal: cada ciclo absorve suas falhas e reflete o resultado apenas no
    estado do ledger para o ciclo seguinte.

Componentes principais:
    - ParseFailure: parse não produziu árvore utilizável (ciclo vira no-op)
    - HostUnavailable: falha de transporte no create/delete (retry no próximo ciclo)
    - HostRejected: host recusou um create específico (registro descartado)
"""

from __future__ import annotations


class NeogoError(Exception):
    """Base de todas as exceções do neogo_lsp."""


class ParseFailure(NeogoError):
    """O parser não devolveu uma árvore utilizável para o buffer."""


class HostError(NeogoError):
    """Falha reportada pela superfície de destaque do editor."""


class HostUnavailable(HostError):
    """Round-trip com o host falhou (timeout, transporte fechado)."""


class HostRejected(HostError):
    """Host recusou a requisição; repetir a mesma requisição não adianta."""
