from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from apiwatch.extractors.signatures import ROUTE_SIGNATURES, RouteSignature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointDescriptor:
    method: str
    path: str
    handler_line: str
    line_number: int
    ecosystem: str = ""


def extract(
    content: str,
    filename: str = "",
    signatures: tuple[RouteSignature, ...] = ROUTE_SIGNATURES,
) -> list[EndpointDescriptor]:
    """
    Scan every line of `content` with every signature and report all hits.

    Line-oriented and heuristic: no parsing, no prefix resolution, and lines
    that match more than one signature are reported once per signature.
    `filename` is informational for now; mixed-syntax services are scanned
    with the full table.
    """
    if not isinstance(content, str):
        raise TypeError(f"content must be str, not {type(content).__name__}")

    endpoints: list[EndpointDescriptor] = []
    for index, line in enumerate(content.split("\n"), start=1):
        for sig in signatures:
            for method, path in sig.scan(line):
                endpoints.append(
                    EndpointDescriptor(
                        method=method,
                        path=path,
                        handler_line=line.strip(),
                        line_number=index,
                        ecosystem=sig.ecosystem,
                    )
                )

    logger.debug(f"Extracted {len(endpoints)} endpoint(s) from {filename or '<content>'}")
    return endpoints


def extract_from_file(path: Path, max_bytes: int = 2_000_000) -> list[EndpointDescriptor]:
    try:
        data = path.read_bytes()[:max_bytes]
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return []
    return extract(data.decode("utf-8", errors="ignore"), filename=str(path))
