"""
Context Builder（非 AI）。

职责：
- 从 diff 中还原变更后的绝对行号
- 读取文件当前内容，为每个变更行生成前后 N 行的上下文窗口
- 通过扩展名推断语言（只用于 prompt 展示）
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

from codereview.git.client import GitClient
from codereview.git.client import GitCommandError
from codereview.review.diff_parser import extract_changed_line_numbers
from codereview.review.models import ChangedFile
from codereview.review.models import ContextWindow

logger = logging.getLogger(__name__)

CONTEXT_LINES = 5


class EnrichmentError(RuntimeError):
    """无法为某个文件构建上下文（调用方应退回到无上下文的 diff）。"""


def infer_language_from_path(path: str) -> str:
    """
    通过文件扩展名推断语言。

    只覆盖可被 review 的四种扩展名；其它返回空字符串。
    注意 `.tsx` 必须先于 `.ts` 判断。
    """
    lowered = path.lower()
    if lowered.endswith(".tsx"):
        return "tsx"
    if lowered.endswith(".ts"):
        return "typescript"
    if lowered.endswith(".jsx"):
        return "jsx"
    if lowered.endswith(".js"):
        return "javascript"
    return ""


def render_surrounding_lines(content: str, line_number: int, context_lines: int = CONTEXT_LINES) -> str:
    lines = content.split("\n")
    start = max(0, line_number - context_lines - 1)
    end = min(len(lines), line_number + context_lines)
    if start >= len(lines) or end <= 0:
        return ""

    rendered: list[str] = []
    for idx in range(start, end):
        prefix = ">>> " if idx == line_number - 1 else "    "
        rendered.append(f"{prefix}{idx + 1:4d}: {lines[idx]}")
    return "\n".join(rendered)


def build_context_window(
    content: str,
    changed_lines: Iterable[int],
    context_lines: int = CONTEXT_LINES,
) -> ContextWindow:
    ordered = sorted(set(changed_lines))
    surrounding = {
        line_number: render_surrounding_lines(content=content, line_number=line_number, context_lines=context_lines)
        for line_number in ordered
    }
    return ContextWindow(changed_lines=ordered, surrounding=surrounding)


def load_current_content(git_client: GitClient, path: str) -> str:
    """
    读取文件当前内容：优先 `git show HEAD:<path>`，失败时读工作区文件。

    - 失败：两种方式都失败时抛 `EnrichmentError`
    """
    try:
        return git_client.show_file(path=path, ref="HEAD")
    except GitCommandError:
        logger.debug(f"{path} not found at HEAD, reading working tree copy")

    full_path = os.path.join(git_client.repo_path, path)
    try:
        with open(full_path, encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError as exc:
        raise EnrichmentError(f"cannot read current content of {path}: {exc}") from exc


def enrich_changed_file(git_client: GitClient, changed_file: ChangedFile) -> tuple[ChangedFile, ContextWindow]:
    """
    为单个文件构建上下文。

    - 输出：带 language 标签的文件副本 + 上下文窗口
    - 失败：抛 `EnrichmentError`（由 orchestrator 降级处理）
    """
    try:
        changed_lines = extract_changed_line_numbers(diff=changed_file.diff)
    except ValueError as exc:
        raise EnrichmentError(str(exc)) from exc

    content = load_current_content(git_client=git_client, path=changed_file.new_path)
    tagged = changed_file.model_copy(update={"language": infer_language_from_path(path=changed_file.new_path)})
    return tagged, build_context_window(content=content, changed_lines=changed_lines)
