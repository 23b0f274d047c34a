"""
test_session.py - Testes de ciclo completo (parse → classificação → host)

Propósito:
    Validar as propriedades do motor de reconciliação: idempotência,
    completude, ausência de vazamentos, estabilidade de spans e o no-op em
    falha de parse.
"""

from __future__ import annotations

from neogo_lsp.config import HighlightSettings
from neogo_lsp.ledger import MarkState
from neogo_lsp.session import HighlightSession
from neogo_lsp.spans import Category, SourceSpan

URI = "file:///tmp/main.go"

STR = SourceSpan(Category.STRING, 3, 5, 7)
VAR = SourceSpan(Category.KEYWORD, 1, 1, 3)


class FakeSurface:
    """Host falso que registra chamadas e mantém as marcas vivas."""

    def __init__(self):
        self.next_id = 100
        self.calls = []
        self.marks = {}

    def create_mark(self, category, line, column, length):
        span = SourceSpan(category, line, column, length)
        self.calls.append(("create", span))
        mark_id = self.next_id
        self.next_id += 1
        self.marks[mark_id] = span
        return mark_id

    def delete_mark(self, mark_id):
        self.calls.append(("delete", mark_id))
        del self.marks[mark_id]


class BrokenSurface(FakeSurface):
    def create_mark(self, category, line, column, length):
        raise ValueError("bug no host")


def _provider(*lines):
    return lambda: list(lines)


# --- Cenários com FactSets explícitos ---

def test_scenario_cycles():
    """Cenário: string → mesmo texto → string removida e var adicionada."""
    surface = FakeSurface()
    session = HighlightSession(URI, surface)

    report = session.apply_facts(frozenset({STR}))
    assert report.drive.created == 1
    assert session.ledger.active_count() == 1

    surface.calls.clear()
    report = session.apply_facts(frozenset({STR}))
    assert surface.calls == []

    report = session.apply_facts(frozenset({VAR}))
    assert sorted(kind for kind, _ in surface.calls) == ["create", "delete"]
    assert len(session.ledger) == 1
    assert session.ledger.get(VAR).state is MarkState.ACTIVE
    assert list(surface.marks.values()) == [VAR]


# --- Ciclos completos com texto Go ---

def test_first_cycle_creates_one_mark_per_fact():
    surface = FakeSurface()
    session = HighlightSession(URI, surface)

    report = session.run_cycle(_provider("package main", "", 'var s = "hi"'))
    assert report.skipped is False
    assert report.facts == 3
    assert report.drive.created == 3
    assert set(surface.marks.values()) == {
        SourceSpan(Category.STATEMENT, 1, 1, 7),
        SourceSpan(Category.KEYWORD, 3, 1, 3),
        SourceSpan(Category.STRING, 3, 9, 4),
    }


def test_identical_text_issues_no_calls():
    surface = FakeSurface()
    session = HighlightSession(URI, surface)
    lines = ("package main", "", 'import "fmt"')
    session.run_cycle(_provider(*lines))
    surface.calls.clear()

    report = session.run_cycle(_provider(*lines))
    assert surface.calls == []
    assert report.drive.calls == 0


def test_edit_delta_only():
    """Só os fatos que mudaram geram chamadas; o package mantém o id."""
    surface = FakeSurface()
    session = HighlightSession(URI, surface)
    session.run_cycle(_provider("package main", "", 'var s = "hi"'))
    package = SourceSpan(Category.STATEMENT, 1, 1, 7)
    package_id = session.ledger.get(package).mark_id
    surface.calls.clear()

    report = session.run_cycle(_provider("package main", "", 'const s = "hi"'))
    assert report.drive.deleted == 2
    assert report.drive.created == 2
    assert session.ledger.get(package).mark_id == package_id
    assert set(surface.marks.values()) == {
        package,
        SourceSpan(Category.KEYWORD, 3, 1, 5),
        SourceSpan(Category.STRING, 3, 11, 4),
    }


def test_no_leaks_after_removal():
    surface = FakeSurface()
    session = HighlightSession(URI, surface)
    session.run_cycle(_provider("package main", "", "// a", "// b"))

    session.run_cycle(_provider("package main"))
    assert len(session.ledger) == 1
    assert list(surface.marks.values()) == [SourceSpan(Category.STATEMENT, 1, 1, 7)]


def test_parse_failure_is_noop():
    """Parse sem árvore: zero chamadas e ledger intocado."""
    surface = FakeSurface()
    session = HighlightSession(URI, surface)
    session.run_cycle(_provider("package main", "", 'import "fmt"'))
    before = dict(session.ledger.items())
    surface.calls.clear()

    report = session.run_cycle(_provider("packag main", "", 'import "fmt"'))
    assert report.skipped is True
    assert report.reason
    assert surface.calls == []
    assert dict(session.ledger.items()) == before


def test_syntax_error_strict_mode_keeps_highlights():
    surface = FakeSurface()
    session = HighlightSession(URI, surface, HighlightSettings(skip_on_syntax_error=True))
    session.run_cycle(_provider("package main", "", "func f() {", "}"))
    surface.calls.clear()

    report = session.run_cycle(_provider("package main", "", "func f() {"))
    assert report.skipped is True
    assert surface.calls == []


def test_syntax_error_lenient_mode_classifies_partial_tree():
    surface = FakeSurface()
    session = HighlightSession(URI, surface)

    report = session.run_cycle(_provider("package main", "", "func f() {"))
    assert report.skipped is False
    assert report.syntax_errors is True
    assert SourceSpan(Category.STATEMENT, 1, 1, 7) in session.last_facts


def test_source_provider_error_is_absorbed():
    def provider():
        raise OSError("buffer indisponível")

    session = HighlightSession(URI, FakeSurface())
    report = session.run_cycle(provider)
    assert report.skipped is True
    assert "buffer" in report.reason


def test_unexpected_host_error_does_not_escape():
    session = HighlightSession(URI, BrokenSurface())
    report = session.run_cycle(_provider("package main"))
    assert report.skipped is False
    assert report.facts == 1


def test_clear_deletes_every_mark():
    surface = FakeSurface()
    session = HighlightSession(URI, surface)
    session.run_cycle(_provider("package main", "", 'import "fmt"'))

    report = session.clear()
    assert report.drive.deleted == 3
    assert surface.marks == {}
    assert len(session.ledger) == 0


def test_update_settings_propagates_debug_flag():
    session = HighlightSession(URI, FakeSurface())
    session.update_settings(HighlightSettings(debug_commands=True))
    assert session.driver.debug_commands is True


def test_closed_session_issues_no_calls():
    """Ciclo que chega depois do fechamento não toca no host nem no ledger."""
    surface = FakeSurface()
    session = HighlightSession(URI, surface)
    session.close()

    report = session.run_cycle(_provider("package main"))
    assert report.skipped is True
    assert surface.calls == []
    assert len(session.ledger) == 0

    assert session.clear().skipped is True
    assert surface.calls == []
