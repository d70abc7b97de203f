import re
from typing import Dict, List, Tuple

import aiofiles

from mockwarp.engine.exceptions import MalformedStatusLine, MockFileError
from mockwarp.engine.metrics import record_mock_not_found
from mockwarp.engine.models import CompiledMock, RequestContext, ResponseDescriptor
from mockwarp.engine.template import expand
from mockwarp.logging import logger

DELAY_HEADER = "Response-Delay"

# First 3-digit group following "HTTP/<digit>", e.g. 201 in "HTTP/1.1 201 Created".
STATUS_CODE_PATTERN = re.compile(r"(?<=HTTP/\d).*?\s+(\d{3})", re.IGNORECASE)

WHITESPACE_PATTERN = re.compile(r"\s+")

# Only LF and CRLF end a line; form feeds, U+2028 and the like stay inside it.
LINE_TERMINATOR_PATTERN = re.compile(r"\r?\n")

NOT_FOUND_BODY = '{"error": "Not Found"}'


def not_found() -> CompiledMock:
    """The response served whenever no mock file exists for a request."""
    return CompiledMock(
        descriptor=ResponseDescriptor(
            status=404,
            headers={"content-type": "application/json"},
            body=NOT_FOUND_BODY,
        ),
        delay_ms=0,
    )


async def compile_mock(mock_file: str, context: RequestContext) -> CompiledMock:
    """
    Reads a mock definition and compiles it against the request.

    A missing file is not an error: the default Not Found response is
    returned instead. Every other read failure is raised.

    Raises:
        MockFileError: The file exists but cannot be read or decoded.
        MalformedStatusLine: The status line has no valid status code.
        TemplateExpansionError: The file is not valid template syntax.
    """
    try:
        async with aiofiles.open(mock_file, "r", encoding="utf-8") as f:
            content = await f.read()
    except (FileNotFoundError, NotADirectoryError):
        logger.error(f"No suitable mock file found: {mock_file}. Sending default response.")
        record_mock_not_found()
        return not_found()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Failed to read mock file {mock_file}: {e}", exc_info=True)
        raise MockFileError(mock_file, str(e)) from e

    return build_compiled_mock(content, context)


def build_compiled_mock(content: str, context: RequestContext) -> CompiledMock:
    """
    Turns the raw text of a mock definition into a CompiledMock.

    The whole text is expanded once, split into the header region and the
    body region at the first blank line, and each region is interpreted on
    its own. The body goes through a second expansion after whitespace
    normalization.
    """
    expanded = expand(content, context)
    head_lines, body_lines = split_sections(LINE_TERMINATOR_PATTERN.split(expanded))
    status, headers, delay_ms = parse_head(head_lines)
    body = render_body(body_lines, context)
    logger.debug(f"Generated Response {body}")
    return CompiledMock(
        descriptor=ResponseDescriptor(status=status, headers=headers, body=body),
        delay_ms=delay_ms,
    )


def split_sections(lines: List[str]) -> Tuple[List[str], List[str]]:
    """
    Splits lines at the first empty line. The separator belongs to neither
    region; without one, everything is header region.
    """
    try:
        separator = lines.index("")
    except ValueError:
        return list(lines), []
    return lines[:separator], lines[separator + 1 :]


def parse_head(lines: List[str]) -> Tuple[int, Dict[str, str], int]:
    """
    Interprets the header region of a mock definition.

    Returns:
        Tuple[int, Dict[str, str], int]: The status code (404 when there is
        no status line), the headers, and the Response-Delay in milliseconds
        (0 when absent). Response-Delay is never part of the headers.

    Raises:
        MalformedStatusLine: A line contains 'HTTP' but no valid status code.
    """
    status = 404
    headers: Dict[str, str] = {}
    delay_ms = 0

    for line in lines:
        if "HTTP" in line:
            status = parse_status_line(line)
            logger.debug(f"Response Status set to {status}")
            continue

        key, separator, value = line.partition(":")
        key, value = key.strip(), value.strip()
        if not separator or not key:
            logger.warning(f"Ignoring malformed header line in mock: {line!r}")
            continue

        if key == DELAY_HEADER:
            delay_ms = parse_delay(value)
            logger.debug(f"Delay Set {delay_ms}")
        else:
            headers[key] = value
            logger.debug(f"Headers Set {key}: {value}")

    return status, headers, delay_ms


def parse_status_line(line: str) -> int:
    match = STATUS_CODE_PATTERN.search(line)
    if match is None:
        logger.error(f"Response code should be valid string: {line!r}")
        raise MalformedStatusLine(line)
    status = int(match.group(1))
    if not 100 <= status <= 599:
        logger.error(f"Response code out of range in status line: {line!r}")
        raise MalformedStatusLine(line)
    return status


def parse_delay(value: str) -> int:
    """Non-numeric delays count as 0 and negative ones are clamped to 0, like a timer would treat them."""
    try:
        delay_ms = int(value)
    except ValueError:
        logger.warning(f"Invalid {DELAY_HEADER} value {value!r}, using 0")
        return 0
    return max(delay_ms, 0)


def render_body(lines: List[str], context: RequestContext) -> str:
    """
    Builds the final body from the body region.

    Lines are joined without separators, whitespace runs collapse to a
    single space and the ends are trimmed. The first '{{{' and the first
    '}}}' are split apart so literal braces next to a placeholder are not
    read as a raw triple-mustache tag, then the body is expanded again.
    """
    body = WHITESPACE_PATTERN.sub(" ", "".join(lines)).strip()
    body = body.replace("{{{", "{ {{", 1)
    body = body.replace("}}}", "}} }", 1)
    return expand(body, context)
