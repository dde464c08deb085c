import pytest

from litestar_inertia.middleware import is_version_mismatch, should_change_redirect_status


@pytest.mark.parametrize(
    ("method", "status_code", "expected"),
    [
        ("PUT", 302, True),
        ("patch", 302, True),
        ("DELETE", 302, True),
        ("GET", 302, False),
        ("POST", 302, False),
        ("PUT", 301, False),
        ("PUT", 303, False),
    ],
)
def test_should_change_redirect_status(method: str, status_code: int, expected: bool) -> None:
    assert should_change_redirect_status(method, status_code) is expected


@pytest.mark.parametrize(
    ("method", "client_version", "server_version", "expected"),
    [
        ("GET", "old", "new", True),
        ("GET", "same", "same", False),
        ("GET", None, "new", False),
        ("GET", "old", "", False),
        ("GET", "old", None, False),
        ("POST", "old", "new", False),
    ],
)
def test_is_version_mismatch(
    method: str, client_version: "str | None", server_version: "str | None", expected: bool
) -> None:
    assert is_version_mismatch(method, client_version, server_version) is expected
