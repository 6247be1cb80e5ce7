import base64

import httpx

from apiwatch.config import parse_services
from apiwatch.github.client import GitHubClient
from apiwatch.orchestrator.tools import list_resources, read_resource, run_tool

SERVICES = parse_services(
    """[
      {"name": "campaign-service", "repoOwner": "acme", "repoName": "campaigns",
       "automationRepoPath": "/automation/campaigns", "apiPatterns": ["**/*Controller*"]}
    ]"""
)

CONTROLLER = """@RestController
@RequestMapping("/api/campaigns")
public class CampaignController {
    @GetMapping("/{id}")
    public Campaign get(@PathVariable String id) { return null; }

    @PostMapping
    public Campaign create(@RequestBody Campaign c) { return c; }
}
"""

COMPARE_JSON = {
    "status": "ahead",
    "ahead_by": 1,
    "behind_by": 0,
    "total_commits": 1,
    "files": [
        {
            "filename": "src/main/java/CampaignController.java",
            "status": "modified",
            "additions": 3,
            "deletions": 0,
            "patch": '@@ -10,3 +10,6 @@\n     }\n+    @PostMapping("/campaigns")\n+    public Campaign create() {}',
        },
        {"filename": "README.md", "status": "modified", "additions": 1, "deletions": 1, "patch": "@@ -1 +1 @@\n-a\n+b"},
    ],
    "commits": [
        {
            "sha": "0123456789abcdef",
            "html_url": "https://github.com/acme/campaigns/commit/0123456",
            "commit": {"message": "Add create endpoint\n\nbody", "author": {"name": "Ada", "date": "2024-06-01T00:00:00Z"}},
        }
    ],
}


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if "/compare/" in path:
        return httpx.Response(200, json=COMPARE_JSON)
    if "/contents/" in path:
        if path.endswith("Missing.java"):
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json={"content": base64.b64encode(CONTROLLER.encode()).decode()})
    if path.endswith("/commits"):
        return httpx.Response(200, json=COMPARE_JSON["commits"])
    if path.endswith("/pulls"):
        return httpx.Response(200, json=[])
    return httpx.Response(500)


def _run(name, arguments=None, services=SERVICES):
    return run_tool(
        name,
        arguments,
        services=services,
        client_factory=lambda: GitHubClient(transport=httpx.MockTransport(_handler)),
    )


def test_list_services():
    result = _run("list_services")
    assert result == {
        "services": [
            {
                "name": "campaign-service",
                "repo": "acme/campaigns",
                "automation_path": "/automation/campaigns",
                "api_patterns": ["**/*Controller*"],
            }
        ]
    }


def test_list_services_without_configuration():
    result = _run("list_services", services=[])
    assert result["error"] == "No services configured"
    assert result["example"][0]["name"] == "user-service"


def test_get_api_changes_keeps_only_api_files():
    result = _run("get_api_changes", {"serviceName": "campaign-service", "headBranch": "feature/create"})

    assert result["comparison"]["base"] == "main"
    assert result["comparison"]["head"] == "feature/create"
    assert result["api_changes"] == [
        {
            "filename": "src/main/java/CampaignController.java",
            "status": "modified",
            "matched_lines": ['+    @PostMapping("/campaigns")'],
            "is_api_file": True,
        }
    ]
    assert [f["filename"] for f in result["all_changed_files"]] == [
        "src/main/java/CampaignController.java",
        "README.md",
    ]


def test_unknown_service_lists_available_ones():
    result = _run("get_api_changes", {"serviceName": "billing"})
    assert result == {"error": 'Service "billing" not found.', "available_services": ["campaign-service"]}


def test_compare_branches_summary():
    result = _run("compare_branches", {"serviceName": "campaign-service", "headBranch": "feature/create"})

    assert result["comparison"]["status"] == "ahead"
    assert result["summary"] == {"total_files_changed": 2, "api_files_changed": 1}
    assert result["api_files"][0]["additions"] == 3
    assert result["commits"] == [{"sha": "0123456", "message": "Add create endpoint", "author": "Ada"}]


def test_analyze_api_endpoint():
    result = _run(
        "analyze_api_endpoint",
        {"serviceName": "campaign-service", "filePath": "src/main/java/CampaignController.java"},
    )

    assert result["total_endpoints"] == 3
    assert [(e["method"], e["path"]) for e in result["endpoints"]] == [
        ("UNKNOWN", "/api/campaigns"),
        ("GET", "/{id}"),
        ("POST", ""),
    ]


def test_get_api_details_returns_content():
    result = _run(
        "get_api_details",
        {"serviceName": "campaign-service", "filePath": "src/main/java/CampaignController.java", "ref": "v1"},
    )
    assert result["ref"] == "v1"
    assert result["content"] == CONTROLLER


def test_github_errors_become_error_results():
    result = _run("get_api_details", {"serviceName": "campaign-service", "filePath": "Missing.java"})
    assert result["error"].startswith("Repository or resource not found")


def test_recent_commits_and_pull_requests():
    commits = _run("get_recent_commits", {"serviceName": "campaign-service", "perPage": 5})
    assert commits["commits"][0]["sha"] == "0123456789abcdef"
    assert _run("get_pull_requests", {"serviceName": "campaign-service"})["pull_requests"] == []


def test_invalid_arguments():
    result = _run("get_recent_commits", {"serviceName": "campaign-service", "perPage": 0})
    assert result["error"].startswith("Invalid arguments for get_recent_commits")

    result = _run("get_pull_requests", {"serviceName": "campaign-service", "state": "merged"})
    assert "details" in result


def test_unknown_tool_does_not_open_a_client():
    def factory():
        raise AssertionError("client should not be created")

    result = run_tool("delete_repo", {}, services=SERVICES, client_factory=factory)
    assert result == {"error": "Unknown tool: delete_repo"}


def test_template_for_unknown_service_uses_placeholder_path():
    result = _run("get_test_template", {"serviceName": "billing", "apiType": "REST", "httpMethod": "post"})

    assert result["automation_repo_path"] == "/path/to/automation"
    assert "billing API Tests" in result["template"]
    assert "apiContext.post('/api/v1/endpoint')" in result["template"]


def test_resources():
    resources = list_resources(SERVICES)
    assert resources[0]["uri"] == "automation://campaign-service"

    assert read_resource(SERVICES, "automation://campaign-service")["repo"] == "acme/campaigns"
    assert read_resource(SERVICES, "automation://billing")["error"] == 'Service "billing" not found.'


def test_template_for_a_given_endpoint_path():
    result = _run(
        "get_test_template",
        {"serviceName": "campaign-service", "apiType": "REST", "httpMethod": "POST", "endpointPath": "/campaigns"},
    )

    assert result["endpoint_path"] == "/campaigns"
    assert result["automation_repo_path"] == "/automation/campaigns"
    assert "apiContext.post('/campaigns')" in result["template"]


def test_template_defaults_to_placeholder_endpoint():
    result = _run("get_test_template", {"serviceName": "campaign-service", "apiType": "REST"})
    assert result["endpoint_path"] == "/api/v1/endpoint"
