from __future__ import annotations

import io

from rich.console import Console

from codereview.review.models import ReviewComment
from codereview.review.presenter import has_failing_severity
from codereview.review.presenter import print_review
from codereview.review.presenter import severity_style
from codereview.review.presenter import wrap_comment


def _comment(path: str, line: int, severity: str = "issue", text: str = "fix it") -> ReviewComment:
    return ReviewComment(file_path=path, line=line, comment=text, severity=severity)


def _render(comments: list[ReviewComment]) -> str:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=100)
    print_review(comments=comments, console=console)
    return buffer.getvalue()


def test_severity_styles_follow_priority_order() -> None:
    assert severity_style("blocking issue") == ("🚨", "bold red")
    assert severity_style("Question") == ("❓", "bold yellow")
    assert severity_style("ISSUE") == ("⚠️", "bold yellow")
    assert severity_style("suggestion") == ("💡", "bold cyan")
    assert severity_style("suggestion(non-blocking)") == ("🚨", "bold red")
    assert severity_style("nit") == ("ℹ️", "default")


def test_blocking_question_suggestion_are_distinct() -> None:
    styles = {severity_style(s) for s in ("blocking issue", "question", "suggestion")}
    assert len(styles) == 3


def test_wrap_comment_respects_width() -> None:
    text = " ".join(["word"] * 60)
    lines = wrap_comment(text)
    assert all(len(line) <= 76 for line in lines)
    assert " ".join(lines) == text
    assert wrap_comment("") == [""]


def test_print_review_all_clear() -> None:
    assert "All clear! No issues found." in _render([])


def test_print_review_groups_and_sorts() -> None:
    output = _render(
        [
            _comment("src/b.ts", 9, text="second file"),
            _comment("src/a.ts", 20, text="late line"),
            _comment("src/a.ts", 3, text="early line"),
        ]
    )
    assert output.index("📄 src/a.ts") < output.index("📄 src/b.ts")
    assert output.index("early line") < output.index("late line")
    assert "Line 3: issue" in output
    assert "Found 3 issue(s) across 2 file(s)" in output


def test_has_failing_severity_matches_configured_set() -> None:
    comments = [_comment("a.ts", 1, severity="issue"), _comment("a.ts", 2, severity="Critical ")]
    assert has_failing_severity(comments, failing=["critical"])
    assert not has_failing_severity(comments[:1], failing=["critical"])
    assert has_failing_severity(comments[:1], failing=["suggestion(blocking)", "issue"])
    assert not has_failing_severity(comments, failing=[])
