"""
按变更行数切分 batch（非 AI，确定性）。

规则：
- 单个文件的变更行数超过预算：单独成为一个 batch（不会被拆分）
- 否则累积，直到加入下一个文件会超过预算时再切分
- batch 顺序与输入顺序一致（调用方应先按 path 排序）
"""

from __future__ import annotations

from collections.abc import Iterable

from codereview.review.models import Batch
from codereview.review.models import ChangedFile

DEFAULT_MAX_CHANGES_PER_BATCH = 100


def create_batches(
    files: Iterable[ChangedFile],
    max_changes_per_batch: int = DEFAULT_MAX_CHANGES_PER_BATCH,
) -> list[Batch]:
    if max_changes_per_batch <= 0:
        raise ValueError("max_changes_per_batch must be > 0")

    batches: list[Batch] = []
    current = Batch()

    for changed_file in files:
        file_changes = changed_file.total_changes

        if file_changes > max_changes_per_batch:
            if current.files:
                batches.append(current)
                current = Batch()
            batches.append(Batch(files=[changed_file], total_changes=file_changes))
            continue

        if current.files and current.total_changes + file_changes > max_changes_per_batch:
            batches.append(current)
            current = Batch()

        current.files.append(changed_file)
        current.total_changes += file_changes

    if current.files:
        batches.append(current)
    return batches
