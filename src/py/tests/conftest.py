from collections.abc import Generator
from pathlib import Path

import pytest

from litestar_inertia.vite import clear_manifest_cache

# Environment variables that may affect test behavior - clear before each test
_INERTIA_ENV_VARS = [
    "INERTIA_SSR_ENABLED",
    "INERTIA_SSR_URL",
]


@pytest.fixture(autouse=True)
def clean_inertia_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    for var in _INERTIA_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def reset_manifest_cache() -> Generator[None, None, None]:
    clear_manifest_cache()
    yield
    clear_manifest_cache()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test from an empty project directory with a ``public`` folder."""
    (tmp_path / "public").mkdir()
    monkeypatch.chdir(tmp_path)
    return tmp_path
