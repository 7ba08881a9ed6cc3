from __future__ import annotations

import json

import pytest

from codereview.review.models import ChangedFile
from codereview.review.models import ContextWindow
from codereview.review.prompt import PARSE_FAILURE_SUMMARY
from codereview.review.prompt import build_batch_prompt
from codereview.review.prompt import extract_json_payload
from codereview.review.prompt import parse_review_response


def _file(path: str, diff: str = "+x", language: str = "typescript") -> ChangedFile:
    return ChangedFile(old_path=path, new_path=path, diff=diff, additions=1, deletions=0, language=language)


def test_prompt_orders_files_by_path() -> None:
    files = [_file("src/z.ts", diff="+zed"), _file("src/a.ts", diff="+aye")]
    prompt = build_batch_prompt(guidelines="RULES", files=files, contexts=[None, None])
    assert "### File 1: src/a.ts" in prompt
    assert "### File 2: src/z.ts" in prompt
    assert prompt.index("+aye") < prompt.index("+zed")


def test_prompt_is_deterministic_regardless_of_input_order() -> None:
    a, b = _file("a.ts"), _file("b.ts")
    first = build_batch_prompt(guidelines="G", files=[a, b], contexts=[None, None])
    second = build_batch_prompt(guidelines="G", files=[b, a], contexts=[None, None])
    assert first == second


def test_prompt_contains_guidelines_diff_and_metadata() -> None:
    changed = ChangedFile(old_path="x.tsx", new_path="x.tsx", diff="@@ -1 +1 @@\n+y", additions=3, deletions=2, language="tsx")
    prompt = build_batch_prompt(guidelines="# Naming\nUse camelCase.", files=[changed], contexts=[None])
    assert "# Naming\nUse camelCase." in prompt
    assert "**Language:** tsx | **Changes:** +3 -2" in prompt
    assert "```diff\n@@ -1 +1 @@\n+y\n```" in prompt
    assert "Enhanced Context" not in prompt
    assert '"filePath"' in prompt
    assert "suggestion(blocking)" in prompt


def test_prompt_context_lines_are_sorted_and_contexts_follow_their_file() -> None:
    context = ContextWindow(changed_lines=[9, 2], surrounding={9: "ctx-nine", 2: "ctx-two"})
    files = [_file("b.ts"), _file("a.ts")]
    prompt = build_batch_prompt(guidelines="", files=files, contexts=[context, None])
    assert prompt.index("Line 2 context:\nctx-two") < prompt.index("Line 9 context:\nctx-nine")
    assert prompt.index("### File 2: b.ts") < prompt.index("**Enhanced Context:**")


def test_prompt_skips_empty_context() -> None:
    prompt = build_batch_prompt(guidelines="", files=[_file("a.ts")], contexts=[ContextWindow()])
    assert "Enhanced Context" not in prompt


def test_prompt_rejects_misaligned_contexts() -> None:
    with pytest.raises(ValueError):
        build_batch_prompt(guidelines="", files=[_file("a.ts")], contexts=[])


def test_fenced_and_bare_json_parse_identically() -> None:
    payload = {
        "comments": [{"filePath": "a.ts", "line": 3, "severity": "issue", "comment": "issue: fix"}],
        "summary": "one",
    }
    raw = json.dumps(payload)
    fenced = f"Here you go:\n```json\n{raw}\n```\nthanks"
    assert extract_json_payload(fenced) == raw
    assert parse_review_response(fenced) == parse_review_response(raw)
    parsed = parse_review_response(raw)
    assert parsed.comments[0].file_path == "a.ts"
    assert parsed.summary == "one"


def test_fence_without_language_tag() -> None:
    parsed = parse_review_response('```\n{"comments": [], "summary": "No violations found"}\n```')
    assert parsed.comments == []
    assert parsed.summary == "No violations found"


@pytest.mark.parametrize("raw", ["not json", "```json\n{broken\n```", '["a list"]', '{"comments": [{"line": 1}]}'])
def test_malformed_response_yields_failure_summary(raw: str) -> None:
    parsed = parse_review_response(raw)
    assert parsed.comments == []
    assert parsed.summary == PARSE_FAILURE_SUMMARY
