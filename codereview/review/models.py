"""
Review 领域模型（Pydantic）。

用途：
- 明确 pipeline 各阶段之间传递的数据结构（git -> filter -> batch -> prompt -> LLM -> 输出）
- 作为 LLM JSON 输出的 schema 校验（ReviewResponse）
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ChangedFile(BaseModel):
    """单个文件的变更（从 git diff 归一化而来）。"""

    old_path: str
    new_path: str
    diff: str
    additions: int = 0
    deletions: int = 0
    language: str = ""

    @property
    def path(self) -> str:
        return self.new_path or self.old_path

    @property
    def total_changes(self) -> int:
        return self.additions + self.deletions


class ContextWindow(BaseModel):
    """
    每个变更文件的上下文窗口。

    - changed_lines：变更后的行号（升序、去重）
    - surrounding：行号 -> 该行前后 N 行渲染后的文本，key 集合与 changed_lines 完全一致
    """

    changed_lines: list[int] = Field(default_factory=list)
    surrounding: dict[int, str] = Field(default_factory=dict)


class Batch(BaseModel):
    """一次 LLM 请求要审查的一组文件（按变更行数预算切分）。"""

    files: list[ChangedFile] = Field(default_factory=list)
    total_changes: int = 0


class ReviewComment(BaseModel):
    """模型输出的单条 review 意见。severity 是自由文本，不做枚举校验。"""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(alias="filePath")
    line: int
    comment: str
    severity: str


class ReviewResponse(BaseModel):
    """LLM 批量 review 的结构化输出。"""

    comments: list[ReviewComment] = Field(default_factory=list)
    summary: str = ""
