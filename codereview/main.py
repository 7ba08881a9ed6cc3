"""
CLI 入口。

这里做四件事：
- 加载配置（严格校验参数/环境变量）与 guideline
- 组装外部依赖（httpx.Client / LLM Client / GitClient），并在启动时一次性确定是否启用上下文增强
- 收集变更 -> 过滤 -> 交给 orchestrator
- 输出结果并决定退出码

业务流程不写在这里（由 `review/orchestrator.py` 负责）。
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence

import httpx
from rich.console import Console

from codereview.config import ReviewConfig
from codereview.config import load_config
from codereview.git.client import GitClient
from codereview.git.client import GitCommandError
from codereview.git.client import select_comparison_mode
from codereview.guidelines.loader import load_guidelines
from codereview.llm.client import DEFAULT_TIMEOUT_SECONDS
from codereview.llm.client import ReviewLLMClient
from codereview.review.filter import filter_eligible
from codereview.review.models import ReviewComment
from codereview.review.orchestrator import build_review_orchestrator
from codereview.review.orchestrator import run_review
from codereview.review.parser import context_enrichment_available
from codereview.review.presenter import has_failing_severity
from codereview.review.presenter import print_review

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def review_changes(config: ReviewConfig, guidelines: str, http_client: httpx.Client) -> list[ReviewComment]:
    """收集变更并跑完整 review，返回全部 batch 的评论。"""
    git_client = GitClient(repo_path=config.project_path)
    mode = select_comparison_mode(target_branch=config.target_branch, local=config.local)

    changed = git_client.list_changed_files(mode=mode, include_staged=config.include_staged)
    logger.info(f"Found {len(changed)} changed file(s)")

    # batch 切分依赖输入顺序，先按 path 排序保证确定性
    changed = sorted(changed, key=lambda f: f.path)
    eligible = filter_eligible(changed, limit=config.max_files)
    logger.info(f"Filtered to {len(eligible)} TypeScript/JavaScript file(s) for review")

    llm_client = ReviewLLMClient(
        api_key=config.ai_token,
        base_url=str(config.ai_endpoint),
        model=config.ai_model,
        http_client=http_client,
        temperature=config.temperature,
        prompt_log_path=config.prompt_log,
    )
    orchestrator = build_review_orchestrator(
        llm_client=llm_client,
        git_client=git_client,
        context_enrichment_available=context_enrichment_available(use_tree_sitter=config.use_tree_sitter),
        max_changes_per_batch=config.batch_size,
    )
    return run_review(orchestrator=orchestrator, guidelines=guidelines, files=eligible)


def main(argv: Sequence[str] | None = None, console: Console | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if console is None:
        console = Console()

    try:
        config = load_config(argv=argv, environ=os.environ, cwd=os.getcwd())
        _configure_logging(level=config.log_level)
        guidelines = load_guidelines(path=config.guidelines_path)
        with httpx.Client(timeout=httpx.Timeout(DEFAULT_TIMEOUT_SECONDS)) as http_client:
            comments = review_changes(config=config, guidelines=guidelines, http_client=http_client)
    except (ValueError, OSError, GitCommandError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print_review(comments=comments, console=console)
    if has_failing_severity(comments=comments, failing=config.fail_on_severities):
        return 1
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
