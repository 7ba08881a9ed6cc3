"""
基于 git CLI 的变更收集。

对比方式在配置阶段一次性确定（`ComparisonMode`），每种方式只有一条枚举路径：
- LocalMode：工作区（含暂存区）对比指定分支
- MergeBaseMode：先求 merge-base，只收集当前分支自己的提交
- RefMode：直接对比某个 ref（默认 HEAD）

任何一次 git 调用失败都直接抛 `GitCommandError`，不返回部分结果。
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from codereview.review.diff_parser import count_changes
from codereview.review.models import ChangedFile

logger = logging.getLogger(__name__)


class LocalMode(BaseModel):
    kind: Literal["local"] = "local"
    branch: str


class MergeBaseMode(BaseModel):
    kind: Literal["merge_base"] = "merge_base"
    branch: str


class RefMode(BaseModel):
    kind: Literal["ref"] = "ref"
    ref: str = "HEAD"


ComparisonMode = Annotated[Union[LocalMode, MergeBaseMode, RefMode], Field(discriminator="kind")]


def select_comparison_mode(target_branch: str, local: bool) -> ComparisonMode:
    branch = target_branch.strip()
    if local:
        return LocalMode(branch=branch or "HEAD")
    if branch and branch != "HEAD":
        return MergeBaseMode(branch=branch)
    return RefMode(ref="HEAD")


class GitCommandError(RuntimeError):
    def __init__(self, cmd: list[str], returncode: int, stderr: str) -> None:
        super().__init__(f"git command failed ({returncode}): {' '.join(cmd)}: {stderr.strip()}")
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr


class GitClient:
    """对单个仓库执行 git 命令（仓库路径显式传入，不依赖进程 cwd）。"""

    def __init__(self, repo_path: str, git_bin: str = "git") -> None:
        self._repo_path = os.path.normpath(repo_path)
        self._git_bin = git_bin

    @property
    def repo_path(self) -> str:
        return self._repo_path

    def merge_base(self, branch: str, other: str = "HEAD") -> str:
        return self._run(["merge-base", branch, other]).strip()

    def diff_names(self, *refs: str, cached: bool = False) -> list[str]:
        args = ["diff"]
        if cached:
            args.append("--cached")
        args.append("--name-only")
        args.extend(refs)
        return _parse_lines(self._run(args))

    def diff_path(self, path: str, *refs: str, cached: bool = False) -> str:
        args = ["diff"]
        if cached:
            args.append("--cached")
        args.extend(refs)
        args.extend(["--", path])
        return self._run(args)

    def show_file(self, path: str, ref: str = "HEAD") -> str:
        # 新文件在 HEAD 中不存在属于正常情况，由调用方回退到工作区读取
        return self._run(["show", f"{ref}:{path}"], log_failure=False)

    def list_changed_files(self, mode: ComparisonMode, include_staged: bool) -> list[ChangedFile]:
        """
        收集变更文件。

        - **输入**：对比方式 + 是否包含暂存区内容
        - **输出**：每个有非空 diff 的文件一条 `ChangedFile`
        - **失败**：任一 git 调用失败抛 `GitCommandError`
        """
        refs, compare_ref = self._resolve_refs(mode=mode)

        entries = self.diff_names(*refs)
        if include_staged:
            entries.extend(self.diff_names(cached=True))
        paths = _dedupe(entries)
        logger.info(f"git reports {len(paths)} changed path(s) ({mode.kind})")

        changed: list[ChangedFile] = []
        for path in paths:
            diff_text = ""
            if include_staged:
                diff_text += self.diff_path(path, compare_ref, cached=True)
            diff_text += self.diff_path(path, *refs)
            if not diff_text.strip():
                continue
            additions, deletions = count_changes(diff=diff_text)
            changed.append(
                ChangedFile(
                    old_path=path,
                    new_path=path,
                    diff=diff_text,
                    additions=additions,
                    deletions=deletions,
                )
            )
        return changed

    def _resolve_refs(self, mode: ComparisonMode) -> tuple[list[str], str]:
        """返回 (diff 使用的 refs, 暂存区对比使用的 ref)。merge-base 每次运行只求一次。"""
        if isinstance(mode, LocalMode):
            return [mode.branch], mode.branch
        if isinstance(mode, MergeBaseMode):
            base_commit = self.merge_base(branch=mode.branch)
            logger.info(f"merge-base of {mode.branch} and HEAD: {base_commit}")
            return [base_commit, "HEAD"], mode.branch
        return [mode.ref], mode.ref

    def _run(self, args: list[str], log_failure: bool = True) -> str:
        cmd = [self._git_bin, "-C", self._repo_path] + args
        try:
            result = subprocess.run(cmd, capture_output=True, encoding="utf-8", errors="replace")
        except OSError as exc:
            raise GitCommandError(cmd=cmd, returncode=-1, stderr=str(exc)) from exc
        if result.returncode != 0:
            if log_failure:
                logger.error(f"git failed: {' '.join(cmd)}\nstdout={result.stdout}\nstderr={result.stderr}")
            raise GitCommandError(cmd=cmd, returncode=result.returncode, stderr=result.stderr)
        return result.stdout


def _parse_lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def _dedupe(entries: list[str]) -> list[str]:
    seen: set[str] = set()
    unique: list[str] = []
    for entry in entries:
        entry = entry.strip()
        if not entry or entry in seen:
            continue
        seen.add(entry)
        unique.append(entry)
    return unique
