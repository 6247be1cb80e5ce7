from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

from apiwatch.domain.models import ChangedFile
from apiwatch.extractors.signatures import DIFF_SIGNATURES, RouteSignature, first_match
from apiwatch.repo.patterns import matches_any

logger = logging.getLogger(__name__)

_FILE_HEADERS = (
    "index ",
    "--- ",
    "+++ ",
    "new file mode",
    "deleted file mode",
    "similarity index",
    "rename from",
    "rename to",
    "old mode",
    "new mode",
    "Binary files",
)


@dataclass(frozen=True)
class ChangeRecord:
    filename: str
    status: str
    matched_lines: list[str] = field(default_factory=list)
    is_api_file: bool = True


def changed_lines(patch: str) -> Iterable[str]:
    """
    Yield the added/removed lines of a unified diff, diff marker included.

    Context lines, hunk headers and git headers are dropped. Anything that does
    not look like a diff line is skipped rather than treated as fatal.
    """
    in_hunk = False
    for raw in patch.splitlines():
        if raw.startswith("@@"):
            in_hunk = True
            continue
        if raw.startswith("diff --git"):
            in_hunk = False
            continue
        if not in_hunk and raw.startswith(_FILE_HEADERS):
            continue
        if raw.startswith(("+", "-")):
            yield raw
        elif raw == "" or raw.startswith((" ", "\\")):
            continue
        else:
            logger.debug(f"Skipping malformed patch line: {raw[:80]!r}")


def classify_patch(
    patch: Optional[Union[str, bytes]],
    signatures: Sequence[RouteSignature] = DIFF_SIGNATURES,
) -> list[str]:
    """Route-related changed lines of one patch, first signature hit per line."""
    if not patch:
        return []
    if isinstance(patch, bytes):
        patch = patch.decode("utf-8", errors="replace")
    if not isinstance(patch, str):
        logger.warning(f"Ignoring patch of unexpected type {type(patch).__name__}")
        return []

    sigs = tuple(signatures)
    out: list[str] = []
    for line in changed_lines(patch):
        if first_match(line, sigs) is not None:
            out.append(line.strip())
    return out


def classify(files: Iterable[ChangedFile], patterns: Sequence[str]) -> list[ChangeRecord]:
    """
    Keep files whose path matches any API pattern and list the route lines
    their patch touches.

    A matching file with no patch (binary, too large, removed) is still
    reported, with no matched lines.
    """
    patterns = list(patterns or [])
    if not patterns:
        logger.info("No API path patterns configured; nothing classified as API")
        return []

    records: list[ChangeRecord] = []
    for f in files:
        if not matches_any(f.path, patterns):
            continue
        records.append(
            ChangeRecord(
                filename=f.path,
                status=f.status,
                matched_lines=classify_patch(f.patch),
            )
        )

    logger.debug(f"Classified {len(records)} API file(s)")
    return records
