from __future__ import annotations

from collections.abc import Iterable

from codereview.review.models import ChangedFile

REVIEWABLE_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")
SKIPPED_EXTENSIONS: tuple[str, ...] = (".md", ".json")
SKIPPED_PATH_MARKERS: tuple[str, ...] = ("node_modules", "dist", ".gitlab")


def filter_eligible(files: Iterable[ChangedFile], limit: int = 0) -> list[ChangedFile]:
    if limit < 0:
        raise ValueError("limit must be >= 0")
    result: list[ChangedFile] = []
    for changed_file in files:
        if _should_skip(path=changed_file.path):
            continue
        result.append(changed_file)
        if limit > 0 and len(result) >= limit:
            break
    return result


def _should_skip(path: str) -> bool:
    if not path:
        return True
    if path.endswith(SKIPPED_EXTENSIONS):
        return True
    if any(marker in path for marker in SKIPPED_PATH_MARKERS):
        return True
    return not path.endswith(REVIEWABLE_EXTENSIONS)
