from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RequestContext(BaseModel):
    """
    Read-only snapshot of an inbound request, exposed to mock templates as
    `request`.

    `query` values are strings, or lists of strings for repeated parameters.
    `headers` keys are lower-cased. `body` is whatever the request body
    decoded to (JSON value, form mapping or text), or None when empty.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    method: str
    path: str
    protocol: str = "http"
    http_version: str = Field(default="1.1", alias="httpVersion")
    query: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[Any] = None

    @field_validator("method")
    @classmethod
    def upper_case_method(cls, value: str) -> str:
        return value.upper()

    def template_scope(self) -> Dict[str, Any]:
        """Plain mapping with the key names templates use (httpVersion, not http_version)."""
        return self.model_dump(by_alias=True)


class ResponseDescriptor(BaseModel):
    """Status, headers and body of a compiled mock, ready to be dispatched."""

    model_config = ConfigDict(frozen=True)

    status: int = Field(default=404, ge=100, le=599)
    headers: Dict[str, str] = Field(default_factory=dict)
    body: str = ""


class CompiledMock(BaseModel):
    """A ResponseDescriptor plus the delay (milliseconds) to wait before its body is sent."""

    model_config = ConfigDict(frozen=True)

    descriptor: ResponseDescriptor
    delay_ms: int = Field(default=0, ge=0)
