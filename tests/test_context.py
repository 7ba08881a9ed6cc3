from __future__ import annotations

from pathlib import Path

import pytest

from codereview.git.client import GitClient
from codereview.git.client import GitCommandError
from codereview.review.context import EnrichmentError
from codereview.review.context import build_context_window
from codereview.review.context import enrich_changed_file
from codereview.review.context import infer_language_from_path
from codereview.review.context import render_surrounding_lines
from codereview.review.models import ChangedFile

CONTENT = "\n".join(f"line{i}" for i in range(1, 21))


class _HeadGitClient(GitClient):
    def __init__(self, repo_path: str, head_files: dict[str, str]) -> None:
        super().__init__(repo_path=repo_path)
        self._head_files = head_files

    def show_file(self, path: str, ref: str = "HEAD") -> str:
        if path not in self._head_files:
            raise GitCommandError(cmd=["git", "show", f"{ref}:{path}"], returncode=128, stderr="missing")
        return self._head_files[path]


def test_render_window_marks_changed_line() -> None:
    window = render_surrounding_lines(content=CONTENT, line_number=10)
    rendered = window.split("\n")
    assert len(rendered) == 11
    assert rendered[0] == "       5: line5"
    assert rendered[5] == ">>>   10: line10"
    assert rendered[-1] == "      15: line15"


def test_render_window_clamps_at_file_start() -> None:
    rendered = render_surrounding_lines(content=CONTENT, line_number=1).split("\n")
    assert rendered[0] == ">>>    1: line1"
    assert len(rendered) == 6


def test_render_window_clamps_at_file_end_and_out_of_range() -> None:
    rendered = render_surrounding_lines(content=CONTENT, line_number=20).split("\n")
    assert rendered[-1] == ">>>   20: line20"
    assert len(rendered) == 6
    assert render_surrounding_lines(content="a\nb", line_number=50) == ""


def test_context_window_keys_match_changed_lines() -> None:
    window = build_context_window(content=CONTENT, changed_lines=[7, 3, 7])
    assert window.changed_lines == [3, 7]
    assert set(window.surrounding) == {3, 7}


@pytest.mark.parametrize(
    ("path", "language"),
    [("a.tsx", "tsx"), ("a.ts", "typescript"), ("a.jsx", "jsx"), ("a.js", "javascript"), ("a.py", "")],
)
def test_infer_language_from_path(path: str, language: str) -> None:
    assert infer_language_from_path(path=path) == language


def test_enrich_uses_head_content(tmp_path: Path) -> None:
    client = _HeadGitClient(repo_path=str(tmp_path), head_files={"src/a.ts": CONTENT})
    changed = ChangedFile(old_path="src/a.ts", new_path="src/a.ts", diff="@@ -1,1 +1,2 @@\n line1\n+line2", additions=1)
    tagged, window = enrich_changed_file(git_client=client, changed_file=changed)
    assert tagged.language == "typescript"
    assert changed.language == ""
    assert window.changed_lines == [2]
    assert ">>>    2: line2" in window.surrounding[2]


def test_enrich_falls_back_to_working_tree(tmp_path: Path) -> None:
    (tmp_path / "new.tsx").write_text("a\nb\nc\n", encoding="utf-8")
    client = _HeadGitClient(repo_path=str(tmp_path), head_files={})
    changed = ChangedFile(old_path="new.tsx", new_path="new.tsx", diff="@@ -0,0 +1,3 @@\n+a\n+b\n+c", additions=3)
    tagged, window = enrich_changed_file(git_client=client, changed_file=changed)
    assert tagged.language == "tsx"
    assert window.changed_lines == [1, 2, 3]


def test_enrich_raises_when_content_unavailable(tmp_path: Path) -> None:
    client = _HeadGitClient(repo_path=str(tmp_path), head_files={})
    changed = ChangedFile(old_path="gone.ts", new_path="gone.ts", diff="@@ -1,1 +1,1 @@\n+x", additions=1)
    with pytest.raises(EnrichmentError):
        enrich_changed_file(git_client=client, changed_file=changed)
