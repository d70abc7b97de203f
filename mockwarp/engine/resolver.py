import os
import posixpath

from mockwarp.logging import logger

# A file or directory with this name serves as the fallback for its whole path prefix.
WILDCARD_MARKER = "__"


def resolve_mock_dir(request_path: str, mocks_dir: str) -> str:
    """
    Maps a request path to the mock-group directory that should answer it.

    The exact directory (`mocks_dir` joined with every path segment) is the
    starting candidate. Segments are then dropped from the end one at a time,
    and the first `<mocks_dir>/<remaining segments>/__` that exists replaces
    the candidate, so the most specific wildcard wins. With no wildcard
    marker anywhere above the path the exact candidate is returned as is;
    the caller decides what to do if it does not exist.

    Args:
        request_path (str): URL path of the request, e.g. '/users/42/orders'.
        mocks_dir (str): Root directory of the mock definitions.

    Returns:
        str: Filesystem path of the matched directory (or wildcard marker).
    """
    steps = [step for step in request_path.split("/") if step]
    matched_dir = os.path.join(mocks_dir, *steps)

    while steps:
        steps.pop()
        wildcard_path = os.path.join(mocks_dir, *steps, WILDCARD_MARKER)
        if os.path.exists(wildcard_path):
            logger.debug(f"Wildcard match for {request_path}: {wildcard_path}")
            return wildcard_path

    logger.debug(f"Resolved {request_path} to {matched_dir}")
    return matched_dir


def select_mock_file(directory: str, method: str, extension: str = ".mock") -> str:
    """Path of the mock file answering `method` inside a resolved directory, e.g. '<dir>/GET.mock'."""
    return os.path.join(directory, f"{method.upper()}{extension}")


def normalize_request_path(path: str) -> str:
    """
    Removes '.' and '..' segments the way URL parsers do, so '/a/../b' is
    '/b' and '/../etc' is '/etc'. Keeps resolution inside the mock root.
    """
    return posixpath.normpath("/" + path.lstrip("/"))
