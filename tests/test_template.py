import pytest

from mockwarp.engine.exceptions import TemplateExpansionError
from mockwarp.engine.models import RequestContext
from mockwarp.engine.template import expand


def test_request_fields_are_available(context: RequestContext) -> None:
    text = "{{request.method}} {{request.path}} {{request.protocol}}/{{request.httpVersion}}"
    assert expand(text, context) == "GET /users/42 http/1.1"


def test_nested_lookups(context: RequestContext) -> None:
    assert expand("{{request.query.id}}", context) == "42"
    assert expand("{{request.headers.user-agent}}", context) == "pytest"
    assert expand("{{request.body.name}}", context) == "Ada"


def test_unresolved_placeholder_renders_empty(context: RequestContext) -> None:
    assert expand("[{{request.query.missing}}][{{nothing}}]", context) == "[][]"


def test_repeated_query_parameter_is_iterable(context: RequestContext) -> None:
    assert expand("{{#request.query.tag}}<{{.}}>{{/request.query.tag}}", context) == "<a><b>"


def test_double_braces_escape_html_and_triple_braces_do_not() -> None:
    context = RequestContext(method="GET", path="/", query={"q": "<b>&"})
    assert expand("{{request.query.q}}", context) == "&lt;b&gt;&amp;"
    assert expand("{{{request.query.q}}}", context) == "<b>&"


def test_text_without_placeholders_is_unchanged(context: RequestContext) -> None:
    text = 'HTTP/1.1 200 OK\nContent-Type: application/json\n\n{"a": {"b": 1}}'
    assert expand(text, context) == text


def test_malformed_template_raises(context: RequestContext) -> None:
    with pytest.raises(TemplateExpansionError):
        expand("Hello {{request.method", context)
