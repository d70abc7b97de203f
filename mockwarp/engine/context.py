import json
from typing import Any, Dict, List, Optional, Union
from urllib.parse import parse_qs

from fastapi import Request

from mockwarp.engine.models import RequestContext
from mockwarp.engine.resolver import normalize_request_path
from mockwarp.logging import logger


async def build_request_context(request: Request) -> RequestContext:
    """
    Snapshots an inbound FastAPI request into a RequestContext.

    JSON bodies are decoded so templates can reach into them
    (`{{request.body.name}}`), URL-encoded forms become a mapping, and any
    other body is passed through as text.
    """
    raw_body = await request.body()
    return RequestContext(
        method=request.method,
        path=normalize_request_path(request.url.path),
        protocol=request.url.scheme,
        httpVersion=request.scope.get("http_version", "1.1"),
        query=_collect_multi(request.query_params.multi_items()),
        headers={key.lower(): value for key, value in request.headers.items()},
        body=_decode_body(raw_body, request.headers.get("content-type", "")),
    )


def _collect_multi(items: List[tuple]) -> Dict[str, Union[str, List[str]]]:
    """Single values stay strings; repeated keys become lists in arrival order."""
    collected: Dict[str, Union[str, List[str]]] = {}
    for key, value in items:
        if key not in collected:
            collected[key] = value
        elif isinstance(collected[key], list):
            collected[key].append(value)
        else:
            collected[key] = [collected[key], value]
    return collected


def _decode_body(raw_body: bytes, content_type: str) -> Optional[Any]:
    if not raw_body:
        return None
    text = raw_body.decode("utf-8", errors="replace")
    media_type = content_type.split(";")[0].strip().lower()

    if media_type == "application/json" or media_type.endswith("+json"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Request declared JSON but body did not parse, passing it as text")
            return text
    if media_type == "application/x-www-form-urlencoded":
        return _collect_multi(
            [(key, value) for key, values in parse_qs(text, keep_blank_values=True).items() for value in values]
        )
    return text
