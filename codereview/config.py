"""
CLI 配置加载。

设计目标：
- **严格**：缺少 AI token、项目路径不存在等直接报错（避免"看起来跑了其实没配置好"）
- **类型安全**：argparse 解析后交给 Pydantic 校验 URL/数值范围
- **可测试**：加载函数接收 `argv` 与 `environ` 显式输入，不读取全局状态
"""

from __future__ import annotations

import argparse
import os
from collections.abc import Mapping, Sequence

from pydantic import BaseModel, Field, HttpUrl

from codereview.guidelines.loader import default_rules_dir

DEFAULT_ENDPOINT = "https://api.scaleway.ai/v1"
DEFAULT_MODEL = "qwen3-235b-a22b-instruct-2507"

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


class ReviewConfig(BaseModel):
    """一次 CLI 运行所需的全部配置。"""

    ai_token: str
    ai_endpoint: HttpUrl
    ai_model: str
    temperature: float = Field(ge=0.0, le=2.0)
    guidelines_path: str
    project_path: str
    target_branch: str
    local: bool
    use_tree_sitter: bool
    include_staged: bool
    max_files: int = Field(ge=0)
    batch_size: int = Field(gt=0)
    fail_on_severities: list[str]
    prompt_log: str | None = None
    log_level: str = "INFO"


def _env(environ: Mapping[str, str], *keys: str, default: str = "") -> str:
    for key in keys:
        value = environ.get(key, "")
        if value:
            return value
    return default


def _env_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key, "").strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return default


def _env_number(environ: Mapping[str, str], key: str, default: float) -> float:
    value = environ.get(key, "")
    try:
        return float(value) if value else default
    except ValueError:
        return default


def build_arg_parser(environ: Mapping[str, str], cwd: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="code-review",
        description="AI code review of local git changes against Markdown guidelines.",
        epilog=(
            "Examples:\n"
            "  code-review --project-path ../project --target-branch origin/main --ai-token $AI_TOKEN\n"
            "  code-review --rules-file ./rules/rules.md --local"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--ai-token", default=_env(environ, "AI_TOKEN", "SCW_SECRET_KEY_AI_USER"), help="API token for the AI endpoint")
    parser.add_argument("--ai-endpoint", default=_env(environ, "AI_ENDPOINT", "SCALEWAY_AI_ENDPOINT", default=DEFAULT_ENDPOINT), help="OpenAI-compatible base URL")
    parser.add_argument("--ai-model", default=_env(environ, "AI_MODEL", "SCALEWAY_AI_MODEL", default=DEFAULT_MODEL), help="Model name")
    parser.add_argument(
        "--temperature",
        type=float,
        default=_env_number(environ, "REVIEW_TEMPERATURE", 0.0),
        help="Sampling temperature (use 0 for consistent results)",
    )
    parser.add_argument("--rules-file", default=_env(environ, "RULES_FILE") or None, help="Rules .md file or directory (overrides --rules-dir)")
    parser.add_argument("--rules-dir", default=_env(environ, "RULES_DIR", default=default_rules_dir(cwd)), help="Rules directory")
    parser.add_argument("--project-path", default=_env(environ, "PROJECT_PATH", default="."), help="Path to the git repository")
    parser.add_argument("--target-branch", default=_env(environ, "TARGET_BRANCH", default="HEAD"), help="Base branch for diffs")
    parser.add_argument(
        "--local",
        action=argparse.BooleanOptionalAction,
        default=_env_bool(environ, "LOCAL", False),
        help="Compare working tree (staged + unstaged) to the target branch",
    )
    parser.add_argument(
        "--tree-sitter",
        dest="use_tree_sitter",
        action=argparse.BooleanOptionalAction,
        default=_env_bool(environ, "USE_TREE_SITTER", True),
        help="Attach surrounding source context to changed lines",
    )
    parser.add_argument(
        "--include-staged",
        action=argparse.BooleanOptionalAction,
        default=_env_bool(environ, "INCLUDE_STAGED", True),
        help="Include staged changes",
    )
    parser.add_argument("--max-files", type=int, default=int(_env_number(environ, "MAX_FILES", 0)), help="Review at most N files (0 = unlimited)")
    parser.add_argument("--batch-size", type=int, default=int(_env_number(environ, "REVIEW_BATCH_SIZE", 100)), help="Max changed lines per request")
    parser.add_argument(
        "--fail-on-severity",
        action="append",
        default=None,
        help="Severity that makes the run exit with code 1 (repeatable)",
    )
    parser.add_argument("--prompt-log", default=_env(environ, "PROMPT_LOG") or None, help="Write each prompt to this file")
    parser.add_argument("--log-level", default=_env(environ, "LOG_LEVEL", default="INFO"), help="Logging level")
    return parser


def load_config(argv: Sequence[str], environ: Mapping[str, str], cwd: str) -> ReviewConfig:
    """
    解析命令行 + 环境变量并校验。

    - **输入**：`argv`（不含程序名）、`environ`（例如 `os.environ`）、当前目录
    - **输出**：`ReviewConfig`
    - **失败**：缺失/非法则抛 `ValueError`（pydantic 的 ValidationError 也是 ValueError）
    """
    args = build_arg_parser(environ=environ, cwd=cwd).parse_args(list(argv))

    if not args.ai_token or not args.ai_token.strip():
        raise ValueError("ai token is required (--ai-token or AI_TOKEN)")
    if not os.path.isdir(args.project_path):
        raise ValueError(f"project path is not a directory: {args.project_path}")

    fail_on = args.fail_on_severity
    if fail_on is None:
        fail_on = [s for s in _env(environ, "FAIL_ON_SEVERITY", default="critical").split(",") if s.strip()]

    return ReviewConfig(
        ai_token=args.ai_token.strip(),
        ai_endpoint=args.ai_endpoint,
        ai_model=args.ai_model,
        temperature=args.temperature,
        guidelines_path=args.rules_file or args.rules_dir,
        project_path=args.project_path,
        target_branch=args.target_branch,
        local=args.local,
        use_tree_sitter=args.use_tree_sitter,
        include_staged=args.include_staged,
        max_files=args.max_files,
        batch_size=args.batch_size,
        fail_on_severities=[s.strip() for s in fail_on],
        prompt_log=args.prompt_log,
        log_level=args.log_level.upper(),
    )
