from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from apiwatch.config import Settings, find_service, setup_logging
from apiwatch.extractors.diff_classifier import classify
from apiwatch.extractors.endpoints import EndpointDescriptor, extract_from_file
from apiwatch.github.client import GitHubClient
from apiwatch.orchestrator.tools import list_resources, read_resource, run_tool, service_not_found
from apiwatch.repo.git_diff import changed_files

app = typer.Typer(no_args_is_help=True, add_completion=False)

services_app = typer.Typer(no_args_is_help=True)
app.add_typer(services_app, name="services")

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging on stderr"),
) -> None:
    setup_logging(verbose)


def _settings() -> Settings:
    return Settings()


def _emit(payload: Any) -> None:
    console.print_json(data=payload)
    if isinstance(payload, dict) and "error" in payload:
        raise typer.Exit(code=1)


def _run(name: str, arguments: dict[str, Any]) -> None:
    settings = _settings()

    def client_factory() -> GitHubClient:
        return GitHubClient(
            token=settings.github_token,
            base_url=settings.github_api_url,
            timeout=settings.request_timeout,
        )

    result = run_tool(
        name,
        arguments,
        services=settings.services(),
        client_factory=client_factory,
        default_branch=settings.default_base_branch,
    )
    _emit(result)


def _endpoint_table(endpoints: list[EndpointDescriptor]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("LINE", no_wrap=True, justify="right")
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("ECOSYSTEM", no_wrap=True)
    table.add_column("SOURCE")
    for e in endpoints:
        table.add_row(str(e.line_number), e.method, escape(e.path), e.ecosystem, escape(e.handler_line))
    return table


@services_app.command("list")
def services_list() -> None:
    _run("list_services", {})


@services_app.command("show")
def services_show(name: str = typer.Argument(..., help="Service name")) -> None:
    _emit(read_resource(_settings().services(), f"automation://{name}"))


@services_app.command("resources")
def services_resources() -> None:
    _emit(list_resources(_settings().services()))


@app.command()
def changes(
    service: str = typer.Argument(..., help="Service to check for API changes"),
    base: Optional[str] = typer.Option(None, help="Base branch (default: DEFAULT_BASE_BRANCH)"),
    head: Optional[str] = typer.Option(None, help="Head branch or commit"),
) -> None:
    """API-relevant files and route lines changed between two refs."""
    _run("get_api_changes", {"serviceName": service, "baseBranch": base, "headBranch": head})


@app.command()
def compare(
    service: str = typer.Argument(..., help="Service name"),
    head: str = typer.Option(..., help="Head branch to compare"),
    base: Optional[str] = typer.Option(None, help="Base branch (default: DEFAULT_BASE_BRANCH)"),
) -> None:
    """Summary of a branch comparison, API files first."""
    _run("compare_branches", {"serviceName": service, "baseBranch": base, "headBranch": head})


@app.command()
def details(
    service: str = typer.Argument(..., help="Service name"),
    file_path: str = typer.Argument(..., help="Path of the file in the service repo"),
    ref: Optional[str] = typer.Option(None, help="Branch or commit to read from"),
) -> None:
    """Full content of one file."""
    _run("get_api_details", {"serviceName": service, "filePath": file_path, "ref": ref})


@app.command()
def commits(
    service: str = typer.Argument(..., help="Service name"),
    since: Optional[str] = typer.Option(None, help="ISO date to list commits since"),
    per_page: int = typer.Option(10, help="Number of commits to fetch"),
) -> None:
    _run("get_recent_commits", {"serviceName": service, "since": since, "perPage": per_page})


@app.command()
def prs(
    service: str = typer.Argument(..., help="Service name"),
    state: str = typer.Option("open", help="open|closed|all"),
) -> None:
    _run("get_pull_requests", {"serviceName": service, "state": state})


@app.command()
def analyze(
    service: str = typer.Argument(..., help="Service name"),
    file_path: str = typer.Argument(..., help="Path of the API file in the service repo"),
    ref: Optional[str] = typer.Option(None, help="Branch or commit to read from"),
) -> None:
    """Every route declaration found in a remote file."""
    _run("analyze_api_endpoint", {"serviceName": service, "filePath": file_path, "ref": ref})


@app.command()
def template(
    service: str = typer.Argument(..., help="Service name"),
    api_type: str = typer.Option("REST", help="REST|GraphQL|gRPC"),
    method: Optional[str] = typer.Option(None, help="HTTP method for REST templates"),
    path: Optional[str] = typer.Option(None, "--path", help="Endpoint path for REST templates"),
    raw: bool = typer.Option(False, help="Print only the template text"),
) -> None:
    """Test boilerplate for a service's API."""
    result = run_tool(
        "get_test_template",
        {"serviceName": service, "apiType": api_type, "httpMethod": method, "endpointPath": path},
        services=_settings().services(),
        client_factory=lambda: GitHubClient(),
    )
    if raw and "template" in result:
        console.print(result["template"], markup=False, highlight=False, soft_wrap=True)
        return
    _emit(result)


@app.command()
def scan(
    file: str = typer.Argument(..., help="Local source file to scan"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    """Extract route declarations from a local file."""
    path = Path(file).expanduser()
    if not path.is_file():
        raise typer.BadParameter(f"File does not exist: {path}")

    endpoints = extract_from_file(path)
    if format.lower() == "json":
        _emit(
            {
                "file_path": str(path),
                "endpoints": [asdict(e) for e in endpoints],
                "total_endpoints": len(endpoints),
            }
        )
        return

    console.print(f"[bold]File:[/bold] {escape(str(path))}")
    console.print(f"[bold]Endpoints:[/bold] {len(endpoints)}")
    if endpoints:
        console.print(_endpoint_table(endpoints))


@app.command()
def diff(
    repo: str = typer.Argument(".", help="Path to a local git repo"),
    base: str = typer.Option("HEAD~1", help="Base ref"),
    head: str = typer.Option("HEAD", help="Head ref"),
    pattern: Optional[list[str]] = typer.Option(None, "--pattern", "-p", help="API path pattern (repeatable)"),
    service: Optional[str] = typer.Option(None, help="Take API patterns from this configured service"),
) -> None:
    """Classify API changes between two refs of a local repo."""
    repo_path = Path(repo).expanduser().resolve()
    if not repo_path.is_dir():
        raise typer.BadParameter(f"Repo path is not a directory: {repo_path}")

    patterns = list(pattern or [])
    if service:
        services = _settings().services()
        cfg = find_service(services, service)
        if cfg is None:
            _emit(service_not_found(service, services))
            return
        patterns.extend(cfg.api_patterns)
    if not patterns:
        raise typer.BadParameter("Give at least one --pattern or a --service with apiPatterns")

    files = changed_files(repo_path, base, head)
    records = classify(files, patterns)
    _emit(
        {
            "repo": str(repo_path),
            "comparison": {"base": base, "head": head},
            "api_changes": [asdict(r) for r in records],
            "all_changed_files": [{"filename": f.path, "status": f.status} for f in files],
        }
    )


@app.command()
def ping() -> None:
    console.print("pong")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
