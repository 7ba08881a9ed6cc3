"""
Tree-sitter 能力探测。

当前上下文窗口只是纯文本的前后 N 行，语法树本身并不参与 prompt 构建；
这里只在启动时确认 JS/TS 语法是否可加载，结果作为 `context_enrichment_available`
传给 orchestrator，不在运行中途修改。
"""

from __future__ import annotations

import logging

from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

logger = logging.getLogger(__name__)

REQUIRED_LANGUAGES: tuple[str, ...] = ("javascript", "typescript", "tsx")


def parser_for_language(language: str) -> Parser | None:
    if language == "jsx":
        language = "javascript"
    try:
        return get_parser(language)
    except Exception as exc:
        logger.debug(f"tree-sitter parser for {language} unavailable: {exc}")
        return None


def parser_support_available() -> bool:
    missing = [lang for lang in REQUIRED_LANGUAGES if parser_for_language(language=lang) is None]
    if missing:
        logger.warning(f"Tree-sitter initialization failed for {', '.join(missing)}; falling back to plain diff")
        return False
    return True


def context_enrichment_available(use_tree_sitter: bool) -> bool:
    if not use_tree_sitter:
        return False
    return parser_support_available()
