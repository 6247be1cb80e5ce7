import textwrap

import pytest

from apiwatch.extractors.endpoints import EndpointDescriptor, extract, extract_from_file


EXPRESS_SRC = textwrap.dedent(
    """\
    const express = require('express');
    const router = express.Router();

    router.get('/users', listUsers);
    router.post("/users", createUser);
    router.delete(`/users/:id`, removeUser);

    const cached = cache.get(key);
    module.exports = router;
    """
)


def test_express_route_on_line_twelve():
    lines = ["// filler"] * 11 + ["router.get('/users/:id', getUser);"]
    endpoints = extract("\n".join(lines), "routes/users.js")

    assert endpoints == [
        EndpointDescriptor(
            method="GET",
            path="/users/:id",
            handler_line="router.get('/users/:id', getUser);",
            line_number=12,
            ecosystem="express",
        )
    ]


def test_express_file_in_line_order():
    endpoints = extract(EXPRESS_SRC, "routes/users.js")
    assert [(e.method, e.path, e.line_number) for e in endpoints] == [
        ("GET", "/users", 4),
        ("POST", "/users", 5),
        ("DELETE", "/users/:id", 6),
    ]


def test_two_chained_calls_on_one_line_yield_two_endpoints():
    endpoints = extract("router.get('/a', a); router.get('/b', b);", "r.js")
    assert [(e.method, e.path) for e in endpoints] == [("GET", "/a"), ("GET", "/b")]
    assert {e.line_number for e in endpoints} == {1}


def test_spring_controller():
    src = textwrap.dedent(
        """\
        @RestController
        @RequestMapping("/api/campaigns")
        public class CampaignController {
            @GetMapping
            public List<Campaign> list() { return service.all(); }

            @PostMapping("/campaigns")
            public Campaign create(@RequestBody Campaign c) { return service.save(c); }

            @PutMapping(value = "/{id}")
            public Campaign update(@PathVariable Long id) { return null; }

            @RequestMapping(value = "/legacy", method = RequestMethod.DELETE)
            public void legacy() {}
        }
        """
    )
    endpoints = extract(src, "CampaignController.java")
    assert [(e.method, e.path, e.line_number) for e in endpoints] == [
        ("UNKNOWN", "/api/campaigns", 2),
        ("GET", "", 4),
        ("POST", "/campaigns", 7),
        ("PUT", "/{id}", 10),
        ("DELETE", "/legacy", 13),
    ]
    assert all(e.ecosystem == "spring" for e in endpoints)


def test_nestjs_and_jaxrs_annotations():
    src = "@Get(':id')\nfindOne() {}\n@Post()\ncreate() {}\n@GET\npublic Response all() {}\n"
    endpoints = extract(src, "users.controller.ts")
    assert [(e.method, e.path, e.line_number) for e in endpoints] == [
        ("GET", ":id", 1),
        ("POST", "", 3),
        ("GET", "", 5),
    ]


def test_fastapi_decorator_overlaps_with_chained_call():
    # "@app.get(" is both a decorator and an app.get( call; both are reported
    endpoints = extract('@app.get("/items/{item_id}")\nasync def read_item(item_id: int): ...', "main.py")
    assert [(e.ecosystem, e.method, e.path) for e in endpoints] == [
        ("express", "GET", "/items/{item_id}"),
        ("python-decorator", "GET", "/items/{item_id}"),
    ]


def test_router_object_decorator_and_path_keyword():
    endpoints = extract('@api.v1.post(path="/orders")', "orders.py")
    assert [(e.ecosystem, e.method, e.path) for e in endpoints] == [("python-decorator", "POST", "/orders")]


def test_flask_route_with_and_without_methods():
    src = '@bp.route("/login", methods=["GET", "POST"])\n@app.route("/")\n'
    endpoints = extract(src, "views.py")
    assert [(e.ecosystem, e.method, e.path) for e in endpoints] == [
        ("flask", "GET", "/login"),
        ("flask", "UNKNOWN", "/"),
    ]


def test_drf_action_and_api_view_have_no_path():
    src = "@action(detail=True, methods=['post'])\n@action(detail=False)\n@api_view(['GET', 'POST'])\n"
    endpoints = extract(src, "views.py")
    assert [(e.method, e.path) for e in endpoints] == [("POST", ""), ("UNKNOWN", ""), ("GET", "")]
    assert {e.ecosystem for e in endpoints} == {"django-rest-framework"}


def test_go_routers_and_handlers():
    src = textwrap.dedent(
        """\
        r.GET("/ping", ping)
        v1.POST("/users", createUser)
        mux.Get("/users/{id}", getUser)
        func (h *UserHandler) GetUser(w http.ResponseWriter, r *http.Request) {
        """
    )
    endpoints = extract(src, "main.go")
    assert [(e.ecosystem, e.method, e.path, e.line_number) for e in endpoints] == [
        ("gin", "GET", "/ping", 1),
        ("gin", "POST", "/users", 2),
        ("chi", "GET", "/users/{id}", 3),
        ("go-handler", "GET", "", 4),
    ]


def test_aspnet_attributes():
    src = '[Route("api/[controller]")]\n[HttpGet("{id}")]\n[HttpPost]\n'
    endpoints = extract(src, "UsersController.cs")
    assert [(e.method, e.path) for e in endpoints] == [
        ("UNKNOWN", "api/[controller]"),
        ("GET", "{id}"),
        ("POST", ""),
    ]


def test_class_based_view_methods():
    endpoints = extract("class UserView(APIView):\n    def get(self, request):\n        pass\n", "views.py")
    assert [(e.ecosystem, e.method, e.line_number) for e in endpoints] == [("python-view", "GET", 2)]


def test_plain_calls_are_not_endpoints():
    src = 'value = cache.get(key)\nresp = requests.get("https://example.com")\nconfig.Get("timeout")\n'
    assert [e for e in extract(src, "x.py") if e.ecosystem != "chi"] == []


def test_line_numbers_point_at_the_handler_line():
    content = EXPRESS_SRC + "\n\n@GetMapping(\"/x\")\n"
    lines = content.split("\n")
    for e in extract(content, "mixed.txt"):
        assert lines[e.line_number - 1].strip() == e.handler_line


def test_crlf_content_keeps_line_numbers():
    endpoints = extract("router.get('/a', h);\r\nrouter.post('/b', h);\r\n", "r.js")
    assert [(e.path, e.line_number, e.handler_line) for e in endpoints] == [
        ("/a", 1, "router.get('/a', h);"),
        ("/b", 2, "router.post('/b', h);"),
    ]


def test_extract_is_deterministic():
    assert extract(EXPRESS_SRC, "a.js") == extract(EXPRESS_SRC, "a.js")


def test_empty_content():
    assert extract("", "empty.py") == []


def test_non_string_content_is_rejected():
    with pytest.raises(TypeError):
        extract(b"router.get('/a', h)", "r.js")


def test_extract_from_file(tmp_path):
    f = tmp_path / "routes.js"
    f.write_text(EXPRESS_SRC, encoding="utf-8")
    assert len(extract_from_file(f)) == 3
    assert extract_from_file(tmp_path / "missing.js") == []
