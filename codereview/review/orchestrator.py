"""
Review Orchestrator（核心流程编排）。

流程由工程代码控制，LLM 只负责生成结构化输出：
changed files -> batches -> (enrich -> prompt -> LLM) per batch -> comments

降级策略：
- 单个文件上下文构建失败：该文件退回为纯 diff，继续
- 单个 batch 请求失败：该 batch 记为 0 条评论，继续后面的 batch
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from codereview.git.client import GitClient
from codereview.llm.client import ReviewDispatchError
from codereview.llm.client import ReviewLLMClient
from codereview.review.batching import DEFAULT_MAX_CHANGES_PER_BATCH
from codereview.review.batching import create_batches
from codereview.review.context import EnrichmentError
from codereview.review.context import enrich_changed_file
from codereview.review.models import Batch
from codereview.review.models import ChangedFile
from codereview.review.models import ContextWindow
from codereview.review.models import ReviewComment
from codereview.review.prompt import build_batch_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOrchestrator:
    """Orchestrator 运行时依赖集合。"""

    llm_client: ReviewLLMClient
    git_client: GitClient
    context_enrichment_available: bool
    max_changes_per_batch: int = DEFAULT_MAX_CHANGES_PER_BATCH


def build_review_orchestrator(
    llm_client: ReviewLLMClient,
    git_client: GitClient,
    context_enrichment_available: bool,
    max_changes_per_batch: int = DEFAULT_MAX_CHANGES_PER_BATCH,
) -> ReviewOrchestrator:
    return ReviewOrchestrator(
        llm_client=llm_client,
        git_client=git_client,
        context_enrichment_available=context_enrichment_available,
        max_changes_per_batch=max_changes_per_batch,
    )


def run_review(orchestrator: ReviewOrchestrator, guidelines: str, files: Sequence[ChangedFile]) -> list[ReviewComment]:
    batches = create_batches(files=files, max_changes_per_batch=orchestrator.max_changes_per_batch)
    logger.info(f"Created {len(batches)} batch(es) for review")

    comments: list[ReviewComment] = []
    for index, batch in enumerate(batches, start=1):
        logger.info(
            f"Processing batch {index}/{len(batches)} "
            f"({len(batch.files)} file(s), {batch.total_changes} total changes)"
        )
        batch_comments = review_batch(orchestrator=orchestrator, guidelines=guidelines, batch=batch)
        comments.extend(batch_comments)
        logger.info(f"Found {len(batch_comments)} issue(s) in batch {index}")
    return comments


def review_batch(orchestrator: ReviewOrchestrator, guidelines: str, batch: Batch) -> list[ReviewComment]:
    files: list[ChangedFile] = []
    contexts: list[ContextWindow | None] = []
    for changed_file in batch.files:
        logger.info(f"  {changed_file.path} (+{changed_file.additions} -{changed_file.deletions})")
        enriched, context = _enrich(orchestrator=orchestrator, changed_file=changed_file)
        files.append(enriched)
        contexts.append(context)

    prompt = build_batch_prompt(guidelines=guidelines, files=files, contexts=contexts)
    try:
        response = orchestrator.llm_client.review(prompt=prompt)
    except ReviewDispatchError as exc:
        logger.warning(f"Batch review failed: {exc}")
        return []

    logger.info(f"Batch summary: {response.summary}")
    return response.comments


def _enrich(orchestrator: ReviewOrchestrator, changed_file: ChangedFile) -> tuple[ChangedFile, ContextWindow | None]:
    if not orchestrator.context_enrichment_available:
        return changed_file, None
    try:
        return enrich_changed_file(git_client=orchestrator.git_client, changed_file=changed_file)
    except EnrichmentError as exc:
        logger.warning(f"Failed to enrich context for {changed_file.path}: {exc}")
        return changed_file, None
