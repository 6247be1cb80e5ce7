from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from apiwatch.domain.models import ChangedFile

logger = logging.getLogger(__name__)

_STATUS = {
    "A": "added",
    "M": "modified",
    "D": "removed",
    "R": "renamed",
    "C": "copied",
    "T": "changed",
}


def _git(repo_path: Path, *args: str) -> str:
    # paths are passed and read verbatim: no C-quoting, no pathspec globbing
    return subprocess.check_output(
        ["git", "-C", str(repo_path), "-c", "core.quotePath=false", "--literal-pathspecs", *args],
        stderr=subprocess.DEVNULL,
        text=True,
        encoding="utf-8",
        errors="replace",
    )


def parse_name_status(out: str) -> list[tuple[str, str]]:
    """
    Parse `git diff --name-status -z` output into (status, path) pairs.

    Fields are NUL-separated: "M", path, or "R100", old, new for renames and
    copies. Renames keep the new path.
    """
    fields = out.split("\0")
    entries: list[tuple[str, str]] = []
    i = 0
    while i < len(fields):
        code = fields[i].strip()[:1]
        if not code:
            i += 1
            continue
        if code in ("R", "C"):
            if i + 2 >= len(fields):
                break
            entries.append((_STATUS[code], fields[i + 2]))
            i += 3
            continue
        if i + 1 >= len(fields):
            break
        entries.append((_STATUS.get(code, "modified"), fields[i + 1]))
        i += 2
    return entries


def strip_git_header(diff: str) -> str:
    """Drop the "diff --git"/index/---/+++ preamble so the patch starts at its first hunk."""
    lines = diff.splitlines()
    for i, line in enumerate(lines):
        if line.startswith("@@"):
            return "\n".join(lines[i:])
    return ""


def changed_files(repo_path: Path, base: str = "HEAD~1", head: str = "HEAD") -> list[ChangedFile]:
    """
    Changed files between two local refs, each with its patch.

    Mirrors what the GitHub compare API returns. Returns [] when the directory
    is not a git repo or git fails.
    """
    if not (repo_path / ".git").exists():
        logger.warning(f"Not a git repository: {repo_path}")
        return []

    try:
        out = _git(repo_path, "diff", "--name-status", "-z", f"{base}..{head}")
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning(f"git diff {base}..{head} failed in {repo_path}: {e}")
        return []

    files: list[ChangedFile] = []
    for status, path in parse_name_status(out):
        patch = None
        try:
            patch = strip_git_header(_git(repo_path, "diff", f"{base}..{head}", "--", path)) or None
        except (OSError, subprocess.CalledProcessError) as e:
            logger.debug(f"No patch for {path}: {e}")
        files.append(ChangedFile(path=path, status=status, patch=patch))
    return files
