from __future__ import annotations

import pytest

from codereview.review import parser as parser_module


def test_enrichment_disabled_by_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(parser_module, "get_parser", lambda language: calls.append(language))
    assert parser_module.context_enrichment_available(use_tree_sitter=False) is False
    assert calls == []


def test_enrichment_available_when_grammars_load(monkeypatch: pytest.MonkeyPatch) -> None:
    loaded: list[str] = []

    def fake_get_parser(language: str) -> object:
        loaded.append(language)
        return object()

    monkeypatch.setattr(parser_module, "get_parser", fake_get_parser)
    assert parser_module.context_enrichment_available(use_tree_sitter=True) is True
    assert loaded == ["javascript", "typescript", "tsx"]


def test_enrichment_unavailable_when_grammar_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_get_parser(language: str) -> object:
        if language == "tsx":
            raise LookupError("tsx grammar missing")
        return object()

    monkeypatch.setattr(parser_module, "get_parser", fake_get_parser)
    assert parser_module.context_enrichment_available(use_tree_sitter=True) is False


def test_jsx_uses_javascript_grammar(monkeypatch: pytest.MonkeyPatch) -> None:
    loaded: list[str] = []
    monkeypatch.setattr(parser_module, "get_parser", lambda language: loaded.append(language) or object())
    assert parser_module.parser_for_language(language="jsx") is not None
    assert loaded == ["javascript"]
