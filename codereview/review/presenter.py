"""
终端输出（确定性，不依赖 LLM）。

- 按文件分组、文件名排序，文件内按行号排序
- severity 通过大小写无关的子串匹配选择 emoji 与颜色
"""

from __future__ import annotations

import textwrap
from collections.abc import Iterable, Sequence

from rich.console import Console
from rich.rule import Rule
from rich.text import Text

from codereview.review.models import ReviewComment

WRAP_WIDTH = 76

# 顺序即优先级："blocking" 同时命中 "suggestion(blocking)" 与 "question blocking"
_SEVERITY_STYLES: tuple[tuple[str, str, str], ...] = (
    ("blocking", "🚨", "bold red"),
    ("question", "❓", "bold yellow"),
    ("issue", "⚠️", "bold yellow"),
    ("suggestion", "💡", "bold cyan"),
)
_DEFAULT_STYLE: tuple[str, str] = ("ℹ️", "default")


def severity_style(severity: str) -> tuple[str, str]:
    lowered = severity.lower()
    for needle, marker, style in _SEVERITY_STYLES:
        if needle in lowered:
            return marker, style
    return _DEFAULT_STYLE


def wrap_comment(text: str, width: int = WRAP_WIDTH) -> list[str]:
    wrapped = textwrap.wrap(text, width=width, break_long_words=False, break_on_hyphens=False)
    return wrapped or [text]


def group_comments(comments: Iterable[ReviewComment]) -> dict[str, list[ReviewComment]]:
    by_file: dict[str, list[ReviewComment]] = {}
    for comment in comments:
        by_file.setdefault(comment.file_path, []).append(comment)
    return {path: sorted(by_file[path], key=lambda c: c.line) for path in sorted(by_file)}


def print_review(comments: Sequence[ReviewComment], console: Console) -> None:
    if not comments:
        console.print("\n✅ All clear! No issues found.\n")
        return

    grouped = group_comments(comments)

    console.print()
    console.print(Rule("📋 CODE REVIEW RESULTS", characters="═"))
    console.print()

    for path, file_comments in grouped.items():
        console.print(Text(f"📄 {path}"))
        console.print(Text("─" * 80))
        for comment in file_comments:
            marker, style = severity_style(comment.severity)
            header = Text(f"  {marker}  Line {comment.line}: ")
            header.append(comment.severity, style=style)
            console.print(header)
            for line in wrap_comment(comment.comment):
                console.print(Text(f"    {line}"))
            console.print()

    console.print(Text("═" * 80))
    console.print(f"Found {len(comments)} issue(s) across {len(grouped)} file(s)", markup=False)
    console.print(Text("═" * 80))


def has_failing_severity(comments: Iterable[ReviewComment], failing: Iterable[str]) -> bool:
    targets = {s.strip().lower() for s in failing if s.strip()}
    return any(c.severity.strip().lower() in targets for c in comments)
