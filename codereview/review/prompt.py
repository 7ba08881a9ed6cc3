"""
Batch review prompt 构建与响应解析。

确定性约定：
- 文件按 new_path 升序输出（与输入顺序无关）
- 每个文件的上下文按行号升序输出
- 除 guideline 文本和文件段落外，其余指令文本固定不变
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence

from pydantic import ValidationError

from codereview.review.models import ChangedFile
from codereview.review.models import ContextWindow
from codereview.review.models import ReviewResponse

logger = logging.getLogger(__name__)

PARSE_FAILURE_SUMMARY = "Failed to parse AI response"

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

_PREAMBLE = (
    "# Code Review Task - Multiple Files\n\n"
    "You are a deterministic senior software engineer performing a code review. "
    "You must produce IDENTICAL results for identical inputs.\n"
    "Review ALL files ONLY against the coding guidelines provided below.\n"
    "DO NOT use subjective judgment - only report violations that directly match the rules.\n\n"
    "## Coding Guidelines\n"
)

_RESPONSE_EXAMPLE = {
    "comments": [
        {
            "filePath": "exact/file/path.ts",
            "line": 42,
            "severity": "issue",
            "comment": "issue: Wait for production availability before deploying this feature",
        },
        {
            "filePath": "exact/file/path.ts",
            "line": 50,
            "severity": "suggestion(blocking)",
            "comment": "suggestion(blocking): Can you make a unit test here?",
        },
    ],
    "summary": "Found N violations across M files. Main issues: ...",
}

_INSTRUCTIONS = (
    "\n## CRITICAL Instructions - Follow Exactly\n\n"
    "1. Review ALL files in the order presented above\n"
    "2. For each file, analyze ONLY the changed lines (lines starting with + in the diff)\n"
    "3. Check if code violates ANY specific rule from the guidelines\n"
    "4. DO NOT report issues based on general coding style or personal preference\n"
    "5. BE CONSISTENT: The same code violation must ALWAYS produce the same comment\n"
    "6. For each violation found, you MUST provide:\n"
    '   - **filePath**: The exact file path as shown above (e.g., "src/components/Button.tsx")\n'
    "   - **line**: The exact line number from the diff where the violation occurs\n"
    '   - **severity**: One of: "suggestion(blocking)", "suggestion(non-blocking)", "issue"\n'
    "   - **comment**: Write a humanized, conversational comment starting with the severity prefix. Examples:\n"
    '     * "suggestion(blocking): Can you make a unit test here?"\n'
    '     * "suggestion(non-blocking): Can you make a unit test here?"\n'
    '     * "issue: Wait for production availability before deploying this feature"\n'
    "     Write naturally and conversationally, as if you're a colleague reviewing the code.\n\n"
    "## Response Format - MANDATORY\n\n"
    "You MUST respond with ONLY valid JSON in this EXACT format (no additional text before or after):\n\n"
    f"```json\n{json.dumps(_RESPONSE_EXAMPLE, indent=2)}\n```\n\n"
    "IMPORTANT:\n"
    '- If NO violations found, return: {"comments": [], "summary": "No violations found"}\n'
    "- Review files in order from File 1 to File N\n"
    "- Always use the same severity for the same type of violation\n"
    "- Always phrase comments the same way for identical violations\n"
    "- Write comments in a natural, humanized way - be conversational and friendly\n"
    '- The comment should start with the severity prefix (e.g., "suggestion(blocking):", "issue:")\n'
)


def build_batch_prompt(
    guidelines: str,
    files: Sequence[ChangedFile],
    contexts: Sequence[ContextWindow | None],
) -> str:
    if len(files) != len(contexts):
        raise ValueError("files and contexts must have the same length")

    parts: list[str] = [_PREAMBLE, guidelines, "\n## Files Being Reviewed\n\n"]

    order = sorted(range(len(files)), key=lambda i: files[i].new_path)
    for position, i in enumerate(order, start=1):
        parts.append(_render_file_section(position=position, changed_file=files[i], context=contexts[i]))

    parts.append(_INSTRUCTIONS)
    return "".join(parts)


def _render_file_section(position: int, changed_file: ChangedFile, context: ContextWindow | None) -> str:
    lines: list[str] = [
        f"### File {position}: {changed_file.new_path}\n",
        f"**Language:** {changed_file.language} | **Changes:** +{changed_file.additions} -{changed_file.deletions}\n\n",
        "```diff\n",
        changed_file.diff,
        "\n```\n\n",
    ]

    if context is not None and context.surrounding:
        lines.append("**Enhanced Context:**\n")
        for line_number in sorted(context.changed_lines):
            surrounding = context.surrounding.get(line_number, "")
            if surrounding:
                lines.append(f"\nLine {line_number} context:\n{surrounding}\n")
        lines.append("\n")

    lines.append("-" * 80)
    lines.append("\n\n")
    return "".join(lines)


def extract_json_payload(raw: str) -> str:
    match = _FENCED_JSON.search(raw)
    if match is not None:
        return match.group(1)
    return raw


def parse_review_response(raw: str) -> ReviewResponse:
    """
    解析模型输出为 `ReviewResponse`。

    解析/校验失败不抛错：返回空评论 + 固定 summary，本 batch 视为无结果。
    """
    payload = extract_json_payload(raw)
    try:
        return ReviewResponse.model_validate(json.loads(payload))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning(f"Could not parse AI response: {exc}")
        return ReviewResponse(comments=[], summary=PARSE_FAILURE_SUMMARY)
