from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

UNKNOWN_METHOD = "UNKNOWN"

_VERBS = "get|post|put|delete|patch|head|options"


@dataclass(frozen=True)
class RouteSignature:
    """
    One way of declaring a route on a single line of source.

    method_group is either a regex group index or a literal verb.
    path_group is None when the idiom carries no path on the same line.
    diff=False keeps a noisy rule out of patch classification while still
    using it for whole-file extraction.
    """

    ecosystem: str
    pattern: re.Pattern[str]
    method_group: Union[int, str]
    path_group: Optional[int] = None
    diff: bool = True

    def detects(self, line: str) -> bool:
        return self.pattern.search(line) is not None

    def scan(self, line: str) -> list[tuple[str, str]]:
        """Every (METHOD, path) declared on `line`, left to right."""
        out: list[tuple[str, str]] = []
        for m in self.pattern.finditer(line):
            out.append((self._method(m), self._path(m)))
        return out

    def _method(self, m: re.Match[str]) -> str:
        if isinstance(self.method_group, str):
            return self.method_group.upper()
        verb = m.group(self.method_group)
        if not verb:
            return UNKNOWN_METHOD
        return verb.upper()

    def _path(self, m: re.Match[str]) -> str:
        if self.path_group is None:
            return ""
        return (m.group(self.path_group) or "").strip()


def _sig(
    ecosystem: str,
    regex: str,
    method_group: Union[int, str],
    path_group: Optional[int] = None,
    *,
    ignore_case: bool = True,
    diff: bool = True,
) -> RouteSignature:
    flags = re.IGNORECASE if ignore_case else 0
    return RouteSignature(
        ecosystem=ecosystem,
        pattern=re.compile(regex, flags),
        method_group=method_group,
        path_group=path_group,
        diff=diff,
    )


# Order matters: the diff classifier stops at the first hit on a line, the
# extractor reports hits in this order within a line.
ROUTE_SIGNATURES: tuple[RouteSignature, ...] = (
    # app.get('/users', h) / router.post(`/x`, h)
    _sig(
        "express",
        rf"(app|router)\.({_VERBS})\s*\(\s*['\"`]([^'\"`]+)['\"`]",
        2,
        3,
    ),
    # @GetMapping, @PostMapping("/x"), @PutMapping(value = "/x")
    _sig(
        "spring",
        r"@(Get|Post|Put|Delete|Patch)Mapping\b"
        r"(?:\s*\(\s*(?:(?:value|path)\s*=\s*)?\{?\s*[\"']([^\"']*)[\"'])?",
        1,
        2,
    ),
    # @RequestMapping("/x", method = RequestMethod.GET)
    _sig(
        "spring",
        r"@RequestMapping\b"
        r"(?:\s*\(\s*(?:(?:value|path)\s*=\s*)?\{?\s*[\"']([^\"']*)[\"'])?"
        r"(?:[^)]*?method\s*=\s*\{?\s*(?:RequestMethod\.)?(\w+))?",
        2,
        1,
    ),
    # NestJS @Get(':id'), JAX-RS @GET
    _sig(
        "annotation",
        r"@(Get|Post|Put|Delete|Patch|Head|Options|GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)\b"
        r"(?:\s*\(\s*(?:['\"`]([^'\"`]*)['\"`])?)?",
        1,
        2,
        ignore_case=False,
    ),
    # @app.get("/x"), @router.post(path="/x"), @bp.delete('/x')
    _sig(
        "python-decorator",
        rf"@\s*(?:\w+\.)+({_VERBS})\s*\(\s*(?:path\s*=\s*)?[rbuf]?['\"]([^'\"]+)['\"]",
        1,
        2,
    ),
    # @app.route("/x", methods=["POST"])
    _sig(
        "flask",
        r"@\s*(?:\w+\.)+route\s*\(\s*[rbuf]?['\"]([^'\"]+)['\"]"
        r"(?:[^#]*?methods\s*=\s*[\[(]\s*['\"](\w+)['\"])?",
        2,
        1,
    ),
    # DRF @action(detail=True, methods=['post'])
    _sig(
        "django-rest-framework",
        r"@action\s*\((?:.*?methods\s*=\s*[\[(]\s*['\"](\w+)['\"])?",
        1,
    ),
    # DRF @api_view(['GET', 'POST'])
    _sig(
        "django-rest-framework",
        r"@api_view\s*\((?:\s*[\[(]\s*['\"](\w+)['\"])?",
        1,
    ),
    # Gin / Echo r.GET("/x", h)
    _sig(
        "gin",
        r"(?<![@\w])(GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)\s*\(\s*[\"'`]([^\"'`]+)[\"'`]",
        1,
        2,
        ignore_case=False,
    ),
    # chi r.Get("/x", h); too close to ordinary getters to flag diff lines
    _sig(
        "chi",
        r"\.(Get|Post|Put|Delete|Patch|Head|Options)\s*\(\s*\"([^\"]+)\"",
        1,
        2,
        ignore_case=False,
        diff=False,
    ),
    # ASP.NET [HttpGet], [HttpPost("x")]
    _sig(
        "aspnet",
        r"\[\s*Http(Get|Post|Put|Delete|Patch|Head|Options)\b(?:\s*\(\s*\"([^\"]*)\")?",
        1,
        2,
    ),
    # ASP.NET [Route("api/[controller]")]
    _sig(
        "aspnet",
        r"\[\s*Route\s*\(\s*\"([^\"]*)\"",
        UNKNOWN_METHOD,
        1,
        ignore_case=False,
    ),
    # class-based views: def get(self, request)
    _sig(
        "python-view",
        r"def\s+(get|post|put|delete|patch)\s*\(",
        1,
    ),
    # Go handlers: func (h *Handler) GetUser(w http.ResponseWriter, ...)
    _sig(
        "go-handler",
        r"func\s+\(.*\)\s+(Get|Post|Put|Delete|Patch)",
        1,
    ),
)

DIFF_SIGNATURES: tuple[RouteSignature, ...] = tuple(s for s in ROUTE_SIGNATURES if s.diff)


def first_match(line: str, signatures: tuple[RouteSignature, ...] = DIFF_SIGNATURES) -> Optional[RouteSignature]:
    for sig in signatures:
        if sig.detects(line):
            return sig
    return None
