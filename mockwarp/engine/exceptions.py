class MockEngineError(Exception):
    """Base class for failures that turn a single request into a 500 response."""


class MalformedStatusLine(MockEngineError):
    """A line containing 'HTTP' carried no parsable 3-digit status code."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"Response code should be valid string: {line!r}")


class TemplateExpansionError(MockEngineError):
    """The mock definition is not valid template syntax."""


class MockFileError(MockEngineError):
    """A mock file exists but could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Unable to read mock file {path}: {reason}")
