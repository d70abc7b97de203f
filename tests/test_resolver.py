import os
from pathlib import Path

from mockwarp.engine.resolver import (
    normalize_request_path,
    resolve_mock_dir,
    select_mock_file,
)


def test_exact_path_without_wildcards(mocks_dir: Path) -> None:
    (mocks_dir / "users" / "42").mkdir(parents=True)
    assert resolve_mock_dir("/users/42", str(mocks_dir)) == os.path.join(str(mocks_dir), "users", "42")


def test_missing_exact_path_is_returned_unchanged(mocks_dir: Path) -> None:
    resolved = resolve_mock_dir("/nothing/here", str(mocks_dir))
    assert resolved == os.path.join(str(mocks_dir), "nothing", "here")
    assert not os.path.exists(resolved)


def test_ancestor_wildcard_is_used(mocks_dir: Path) -> None:
    (mocks_dir / "users" / "__").mkdir(parents=True)
    resolved = resolve_mock_dir("/users/99/orders", str(mocks_dir))
    assert resolved == os.path.join(str(mocks_dir), "users", "__")


def test_most_specific_wildcard_wins(mocks_dir: Path) -> None:
    (mocks_dir / "__").mkdir()
    (mocks_dir / "users" / "__").mkdir(parents=True)
    (mocks_dir / "users" / "99" / "__").mkdir(parents=True)

    assert resolve_mock_dir("/users/99/orders", str(mocks_dir)) == os.path.join(
        str(mocks_dir), "users", "99", "__"
    )
    assert resolve_mock_dir("/users/7", str(mocks_dir)) == os.path.join(str(mocks_dir), "users", "__")
    assert resolve_mock_dir("/products/1", str(mocks_dir)) == os.path.join(str(mocks_dir), "__")


def test_wildcard_marker_may_be_a_file(mocks_dir: Path) -> None:
    (mocks_dir / "users").mkdir()
    (mocks_dir / "users" / "__").write_text("")
    assert resolve_mock_dir("/users/1", str(mocks_dir)) == os.path.join(str(mocks_dir), "users", "__")


def test_wildcard_overrides_existing_exact_directory(mocks_dir: Path) -> None:
    (mocks_dir / "users" / "42").mkdir(parents=True)
    (mocks_dir / "users" / "__").mkdir()
    assert resolve_mock_dir("/users/42", str(mocks_dir)) == os.path.join(str(mocks_dir), "users", "__")


def test_root_path_returns_mocks_dir(mocks_dir: Path) -> None:
    (mocks_dir / "__").mkdir()
    assert resolve_mock_dir("/", str(mocks_dir)) == str(mocks_dir)
    assert resolve_mock_dir("///", str(mocks_dir)) == str(mocks_dir)


def test_blank_segments_are_ignored(mocks_dir: Path) -> None:
    assert resolve_mock_dir("//users//42/", str(mocks_dir)) == os.path.join(str(mocks_dir), "users", "42")


def test_select_mock_file_uses_method_name() -> None:
    assert select_mock_file("/mocks/users", "get") == os.path.join("/mocks/users", "GET.mock")
    assert select_mock_file("/mocks/users", "POST", ".resp") == os.path.join("/mocks/users", "POST.resp")


def test_normalize_request_path() -> None:
    assert normalize_request_path("/a/../b") == "/b"
    assert normalize_request_path("/../../etc/passwd") == "/etc/passwd"
    assert normalize_request_path("/users/./42/") == "/users/42"
    assert normalize_request_path("//double") == "/double"
    assert normalize_request_path("") == "/"
    assert normalize_request_path("/") == "/"
