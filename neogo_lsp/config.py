"""
config.py - Configuração do servidor (seção "neogo")

Propósito:
    Lê as configurações enviadas pelo cliente em initializationOptions e
    workspace/didChangeConfiguration.

Formato aceito:
    {"neogo": {"highlight": {...}, "debug": {...}}}  ou diretamente {...}

    highlight.enabled            (bool, padrão True)
    highlight.skipOnSyntaxError  (bool, padrão False)
    highlight.requestTimeout     (float em segundos, padrão 2.0)
    debug.commands               (bool, padrão False) - loga cada chamada ao host
    debug.syntaxTree             (bool, padrão False) - loga a árvore de cada parse

Notas de implementação:
    - Valores inválidos caem no padrão com warning
    - Seções ausentes mantêm os padrões
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SECTION = "neogo"


@dataclass
class HighlightSettings:
    enabled: bool = True
    skip_on_syntax_error: bool = False
    request_timeout: float = 2.0
    debug_commands: bool = False
    debug_syntax_tree: bool = False


def _section(settings, name: str) -> dict:
    value = settings.get(name, {}) if isinstance(settings, dict) else {}
    return value if isinstance(value, dict) else {}


def _read_bool(section: dict, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning(f"Configuração inválida {key}={value!r}, usando {default}")
    return default


def _read_timeout(section: dict, key: str, default: float) -> float:
    value = section.get(key, default)
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        return float(value)
    logger.warning(f"Configuração inválida {key}={value!r}, usando {default}")
    return default


def parse_settings(settings) -> HighlightSettings:
    """
    Converte o payload de configuração do cliente em HighlightSettings.

    Args:
        settings: dict com seção 'neogo' ou já a seção; qualquer outro valor
                  resulta nos padrões
    """
    defaults = HighlightSettings()
    if not isinstance(settings, dict):
        return defaults

    neogo_config = settings.get(SECTION, settings)
    if not isinstance(neogo_config, dict):
        return defaults

    highlight = _section(neogo_config, "highlight")
    debug = _section(neogo_config, "debug")
    return HighlightSettings(
        enabled=_read_bool(highlight, "enabled", defaults.enabled),
        skip_on_syntax_error=_read_bool(
            highlight, "skipOnSyntaxError", defaults.skip_on_syntax_error
        ),
        request_timeout=_read_timeout(highlight, "requestTimeout", defaults.request_timeout),
        debug_commands=_read_bool(debug, "commands", defaults.debug_commands),
        debug_syntax_tree=_read_bool(debug, "syntaxTree", defaults.debug_syntax_tree),
    )
