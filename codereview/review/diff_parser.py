from __future__ import annotations


def extract_changed_line_numbers(diff: str) -> list[int]:
    lines = diff.splitlines()
    changed: list[int] = []
    new_line = 0
    for line in lines:
        if line.startswith("@@"):
            new_line = _parse_hunk_header(header=line)
            continue
        if line.startswith("+") and not line.startswith("+++"):
            changed.append(new_line)
            new_line += 1
            continue
        if line.startswith("-") and not line.startswith("---"):
            continue
        if line.startswith(" "):
            new_line += 1
            continue
    return changed


def count_changes(diff: str) -> tuple[int, int]:
    additions = 0
    deletions = 0
    for line in diff.splitlines():
        if line.startswith("+") and not line.startswith("+++"):
            additions += 1
        elif line.startswith("-") and not line.startswith("---"):
            deletions += 1
    return additions, deletions


def _parse_hunk_header(header: str) -> int:
    # @@ -a,b +c,d @@ (counts may be omitted: @@ -a +c @@)
    try:
        parts = header.split(" ")
        new_part = parts[2]
        if not new_part.startswith("+"):
            raise ValueError(new_part)
        return int(new_part.split(",")[0].lstrip("+"))
    except Exception as exc:
        raise ValueError(f"Invalid diff hunk header: {header}") from exc
