"""
Tool operations exposed by apiwatch.

Each tool takes already-loaded services plus a GitHub client and returns a
JSON-ready dict. Configuration problems (unknown service, nothing configured)
come back as {"error": ...} results instead of exceptions; run_tool also
turns unexpected failures into error results so one bad call never takes
down the caller.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Callable, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from apiwatch.config import SERVICES_CONFIG_EXAMPLE, find_service
from apiwatch.domain.models import ServiceConfig
from apiwatch.extractors.diff_classifier import classify
from apiwatch.extractors.endpoints import extract
from apiwatch.github.client import GitHubClient
from apiwatch.repo.patterns import matches_any
from apiwatch.testgen.templates import DEFAULT_ENDPOINT_PATH, render_test_template

logger = logging.getLogger(__name__)

RESOURCE_SCHEME = "automation://"


def service_not_found(name: str, services: Sequence[ServiceConfig]) -> dict[str, Any]:
    return {
        "error": f'Service "{name}" not found.',
        "available_services": [s.name for s in services],
    }


def _describe(service: ServiceConfig) -> dict[str, Any]:
    return {
        "name": service.name,
        "repo": service.full_name,
        "automation_path": service.automation_repo_path,
        "api_patterns": list(service.api_patterns),
    }


def list_services(services: Sequence[ServiceConfig]) -> dict[str, Any]:
    if not services:
        return {
            "error": "No services configured",
            "help": "Set SERVICES_CONFIG (or SERVICES_FILE) with your service configurations",
            "example": SERVICES_CONFIG_EXAMPLE,
        }
    return {"services": [_describe(s) for s in services]}


def get_api_changes(
    client: GitHubClient,
    services: Sequence[ServiceConfig],
    service_name: str,
    base_branch: Optional[str] = None,
    head_branch: Optional[str] = None,
    default_branch: str = "main",
) -> dict[str, Any]:
    service = find_service(services, service_name)
    if service is None:
        return service_not_found(service_name, services)

    base = base_branch or default_branch
    head = head_branch or default_branch
    comparison = client.compare_commits(service.repo_owner, service.repo_name, base, head)
    api_changes = classify(comparison.files, service.api_patterns)

    return {
        "service": service.name,
        "comparison": {
            "base": base,
            "head": head,
            "ahead_by": comparison.ahead_by,
            "behind_by": comparison.behind_by,
            "total_commits": comparison.total_commits,
        },
        "api_changes": [asdict(r) for r in api_changes],
        "all_changed_files": [{"filename": f.path, "status": f.status} for f in comparison.files],
    }


def get_api_details(
    client: GitHubClient,
    services: Sequence[ServiceConfig],
    service_name: str,
    file_path: str,
    ref: Optional[str] = None,
    default_branch: str = "main",
) -> dict[str, Any]:
    service = find_service(services, service_name)
    if service is None:
        return service_not_found(service_name, services)

    ref = ref or default_branch
    content = client.get_file_content(service.repo_owner, service.repo_name, file_path, ref)
    return {
        "service": service.name,
        "file_path": file_path,
        "ref": ref,
        "content": content,
    }


def get_recent_commits(
    client: GitHubClient,
    services: Sequence[ServiceConfig],
    service_name: str,
    since: Optional[str] = None,
    per_page: int = 10,
) -> dict[str, Any]:
    service = find_service(services, service_name)
    if service is None:
        return service_not_found(service_name, services)

    commits = client.list_commits(service.repo_owner, service.repo_name, since=since, per_page=per_page)
    return {
        "service": service.name,
        "commits": [c.model_dump() for c in commits],
    }


def get_pull_requests(
    client: GitHubClient,
    services: Sequence[ServiceConfig],
    service_name: str,
    state: str = "open",
) -> dict[str, Any]:
    service = find_service(services, service_name)
    if service is None:
        return service_not_found(service_name, services)

    prs = client.list_pull_requests(service.repo_owner, service.repo_name, state=state, per_page=20)
    return {
        "service": service.name,
        "pull_requests": [pr.model_dump() for pr in prs],
    }


def analyze_api_endpoint(
    client: GitHubClient,
    services: Sequence[ServiceConfig],
    service_name: str,
    file_path: str,
    ref: Optional[str] = None,
    default_branch: str = "main",
) -> dict[str, Any]:
    service = find_service(services, service_name)
    if service is None:
        return service_not_found(service_name, services)

    content = client.get_file_content(service.repo_owner, service.repo_name, file_path, ref or default_branch)
    endpoints = extract(content, file_path)
    return {
        "service": service.name,
        "file_path": file_path,
        "endpoints": [asdict(e) for e in endpoints],
        "total_endpoints": len(endpoints),
    }


def get_test_template(
    services: Sequence[ServiceConfig],
    service_name: str,
    api_type: str,
    http_method: Optional[str] = None,
    endpoint_path: Optional[str] = None,
) -> dict[str, Any]:
    # Unknown services still get a template, pointing at a placeholder path.
    service = find_service(services, service_name)
    rendered = render_test_template(
        service_name,
        api_type,
        http_method=http_method,
        automation_repo_path=service.automation_repo_path if service else "",
        path=endpoint_path or DEFAULT_ENDPOINT_PATH,
    )
    return {
        "service": service_name,
        "api_type": rendered.api_type,
        "http_method": rendered.http_method,
        "endpoint_path": rendered.path,
        "template": rendered.text,
        "automation_repo_path": rendered.automation_repo_path,
    }


def compare_branches(
    client: GitHubClient,
    services: Sequence[ServiceConfig],
    service_name: str,
    head_branch: str,
    base_branch: Optional[str] = None,
    default_branch: str = "main",
) -> dict[str, Any]:
    service = find_service(services, service_name)
    if service is None:
        return service_not_found(service_name, services)

    base = base_branch or default_branch
    comparison = client.compare_commits(service.repo_owner, service.repo_name, base, head_branch)
    api_files = [f for f in comparison.files if matches_any(f.path, service.api_patterns)]

    return {
        "service": service.name,
        "comparison": {
            "base": base,
            "head": head_branch,
            "status": comparison.status,
            "ahead_by": comparison.ahead_by,
            "behind_by": comparison.behind_by,
            "total_commits": comparison.total_commits,
        },
        "summary": {
            "total_files_changed": len(comparison.files),
            "api_files_changed": len(api_files),
        },
        "api_files": [
            {
                "filename": f.path,
                "status": f.status,
                "additions": f.additions,
                "deletions": f.deletions,
            }
            for f in api_files
        ],
        "commits": [
            {"sha": c.short_sha, "message": c.subject, "author": c.author}
            for c in comparison.commits
        ],
    }


def list_resources(services: Sequence[ServiceConfig]) -> list[dict[str, str]]:
    return [
        {
            "uri": f"{RESOURCE_SCHEME}{s.name}",
            "name": f"{s.name} Automation Repo",
            "description": f"Automation repository for {s.name} at {s.automation_repo_path}",
            "mime_type": "text/plain",
        }
        for s in services
    ]


def read_resource(services: Sequence[ServiceConfig], uri: str) -> dict[str, Any]:
    name = uri[len(RESOURCE_SCHEME):] if uri.startswith(RESOURCE_SCHEME) else uri
    service = find_service(services, name)
    if service is None:
        return {"uri": uri, **service_not_found(name, services)}
    return {"uri": uri, **_describe(service)}


# ----------------------------
# Dispatch by tool name
# ----------------------------


class _Args(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApiChangesArgs(_Args):
    service_name: str = Field(alias="serviceName")
    base_branch: Optional[str] = Field(default=None, alias="baseBranch")
    head_branch: Optional[str] = Field(default=None, alias="headBranch")


class CompareBranchesArgs(_Args):
    service_name: str = Field(alias="serviceName")
    base_branch: Optional[str] = Field(default=None, alias="baseBranch")
    head_branch: str = Field(alias="headBranch")


class FileArgs(_Args):
    service_name: str = Field(alias="serviceName")
    file_path: str = Field(alias="filePath")
    ref: Optional[str] = None


class RecentCommitsArgs(_Args):
    service_name: str = Field(alias="serviceName")
    since: Optional[str] = None
    per_page: int = Field(default=10, alias="perPage", ge=1, le=100)


class PullRequestsArgs(_Args):
    service_name: str = Field(alias="serviceName")
    state: Literal["open", "closed", "all"] = "open"


class TemplateArgs(_Args):
    service_name: str = Field(alias="serviceName")
    api_type: Literal["REST", "GraphQL", "gRPC"] = Field(alias="apiType")
    http_method: Optional[str] = Field(default=None, alias="httpMethod")
    endpoint_path: Optional[str] = Field(default=None, alias="endpointPath")


TOOL_NAMES: tuple[str, ...] = (
    "list_services",
    "get_api_changes",
    "get_api_details",
    "get_recent_commits",
    "get_pull_requests",
    "analyze_api_endpoint",
    "get_test_template",
    "compare_branches",
)


def run_tool(
    name: str,
    arguments: Optional[dict[str, Any]],
    *,
    services: Sequence[ServiceConfig],
    client_factory: Callable[[], GitHubClient],
    default_branch: str = "main",
) -> dict[str, Any]:
    """Run a tool by name; every failure is reported as {"error": ...}."""
    args = arguments or {}
    try:
        if name == "list_services":
            return list_services(services)

        if name == "get_test_template":
            a = TemplateArgs.model_validate(args)
            return get_test_template(services, a.service_name, a.api_type, a.http_method, a.endpoint_path)

        if name not in TOOL_NAMES:
            return {"error": f"Unknown tool: {name}"}

        with client_factory() as client:
            if name == "get_api_changes":
                a = ApiChangesArgs.model_validate(args)
                return get_api_changes(client, services, a.service_name, a.base_branch, a.head_branch, default_branch)
            if name == "compare_branches":
                c = CompareBranchesArgs.model_validate(args)
                return compare_branches(client, services, c.service_name, c.head_branch, c.base_branch, default_branch)
            if name == "get_api_details":
                f = FileArgs.model_validate(args)
                return get_api_details(client, services, f.service_name, f.file_path, f.ref, default_branch)
            if name == "analyze_api_endpoint":
                f = FileArgs.model_validate(args)
                return analyze_api_endpoint(client, services, f.service_name, f.file_path, f.ref, default_branch)
            if name == "get_recent_commits":
                r = RecentCommitsArgs.model_validate(args)
                return get_recent_commits(client, services, r.service_name, r.since, r.per_page)
            p = PullRequestsArgs.model_validate(args)
            return get_pull_requests(client, services, p.service_name, p.state)
    except ValidationError as e:
        return {
            "error": f"Invalid arguments for {name}: {e.error_count()} error(s)",
            "details": e.errors(include_url=False, include_context=False),
        }
    except Exception as e:
        logger.exception(f"Tool {name} failed")
        return {"error": str(e)}
