"""
Guideline 加载器。

输入可以是单个 `.md` 文件，也可以是包含若干 `.md` 文件的目录；
输出是一整段 Markdown 文本（每个文档前插入由文件名生成的标题），
prompt 侧把它当作不透明文本原样插入。
"""

from __future__ import annotations

import os
from pathlib import Path


def load_guidelines(path: str) -> str:
    """
    - **输入**：文件或目录路径
    - **输出**：拼接后的 guideline 文本
    - **失败**：路径不存在抛 `FileNotFoundError`；非 `.md` 文件或目录下无 `.md` 抛 `ValueError`
    """
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"guidelines path not found: {path}")

    if source.is_dir():
        files = sorted(source.glob("*.md"), key=lambda p: p.name)
        if not files:
            raise ValueError(f"no markdown files found in directory {path}")
    else:
        if source.suffix != ".md":
            raise ValueError(f"rules file must be a .md file, got: {path}")
        files = [source]

    parts: list[str] = []
    for file in files:
        title = split_camel_case(file.stem).strip()
        content = file.read_text(encoding="utf-8")
        parts.append(f"\n# {title}\n\n{content}\n\n")
    return "".join(parts)


def split_camel_case(name: str) -> str:
    chars: list[str] = []
    for idx, ch in enumerate(name):
        if idx > 0 and "A" <= ch <= "Z":
            chars.append(" ")
        chars.append(ch)
    return "".join(chars)


def default_rules_dir(base_dir: str) -> str:
    candidates = [
        os.path.join(base_dir, "rules"),
        os.path.join(base_dir, "documentation", "guidelines"),
    ]
    for candidate in candidates:
        if os.path.isdir(candidate):
            return candidate
    return candidates[0]
