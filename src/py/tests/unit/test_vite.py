import json
from pathlib import Path
from typing import Any

import pytest

from litestar_inertia.config import ViteOptions
from litestar_inertia.exceptions import InvalidManifestError
from litestar_inertia.vite import DEFAULT_DEV_SERVER_URL, Vite

MANIFEST: dict[str, Any] = {
    "resources/main.ts": {
        "file": "assets/main-abc.js",
        "css": ["assets/main-abc.css"],
        "imports": ["_vendor.js"],
        "isEntry": True,
    },
    "_vendor.js": {"file": "assets/vendor-def.js"},
}


def write_manifest(project_dir: Path, manifest: "dict[str, Any] | str") -> Path:
    build = project_dir / "public" / "build"
    build.mkdir(exist_ok=True)
    path = build / "manifest.json"
    path.write_text(manifest if isinstance(manifest, str) else json.dumps(manifest))
    return path


def test_paths(project_dir: Path) -> None:
    vite = Vite(ViteOptions(hot_file="vite.hot", build_directory="dist"))

    assert vite.public_dir == project_dir / "public"
    assert vite.hot_file_path == project_dir / "public" / "vite.hot"
    assert vite.manifest_path == project_dir / "public" / "dist" / "manifest.json"


def test_hot_url(project_dir: Path) -> None:
    vite = Vite()
    assert not vite.is_running_hot()
    assert vite.hot_url() is None

    (project_dir / "public" / "hot").write_text(" http://127.0.0.1:5174/ \n")

    assert vite.is_running_hot()
    assert vite.hot_url() == "http://127.0.0.1:5174"


def test_manifest_is_cached(project_dir: Path) -> None:
    path = write_manifest(project_dir, MANIFEST)
    vite = Vite()

    assert vite.manifest() == MANIFEST
    path.write_text("{}")
    assert vite.manifest() == MANIFEST
    assert vite.asset("resources/main.ts") == MANIFEST["resources/main.ts"]
    assert vite.asset("missing.ts") is None


def test_invalid_manifest(project_dir: Path) -> None:
    write_manifest(project_dir, "{not json")

    with pytest.raises(InvalidManifestError):
        Vite().manifest()


def test_non_object_manifest(project_dir: Path) -> None:
    write_manifest(project_dir, "[]")

    with pytest.raises(InvalidManifestError):
        Vite().manifest()


def test_production_tags(project_dir: Path) -> None:
    write_manifest(project_dir, MANIFEST)

    tags = Vite(ViteOptions(entrypoints=["resources/main.ts"])).make_tag()

    assert tags.splitlines() == [
        '<link rel="stylesheet" href="/build/assets/main-abc.css">',
        '<script type="module" src="/build/assets/main-abc.js"></script>',
        '<link rel="modulepreload" href="/build/assets/vendor-def.js">',
    ]


def test_production_tags_without_entrypoints(project_dir: Path) -> None:
    write_manifest(project_dir, MANIFEST)

    tags = Vite(ViteOptions(entrypoints=[])).make_tag()

    assert tags.splitlines() == [
        '<link rel="stylesheet" href="/build/assets/main-abc.css">',
        '<script type="module" src="/build/assets/main-abc.js"></script>',
        '<script type="module" src="/build/assets/vendor-def.js"></script>',
    ]


def test_missing_manifest_yields_no_tags(project_dir: Path, caplog: pytest.LogCaptureFixture) -> None:
    assert Vite().make_tag() == ""
    assert "No manifest file found" in caplog.text


def test_dev_tags_with_react_refresh(project_dir: Path) -> None:
    (project_dir / "public" / "hot").write_text("http://localhost:5173")

    tags = str(Vite().make_tag())

    assert tags.index("@vite/client") < tags.index("@react-refresh") < tags.index("client/App.tsx")


def test_dev_tags_without_react(project_dir: Path) -> None:
    (project_dir / "public" / "hot").write_text("http://localhost:5173")

    tags = str(Vite(ViteOptions(entrypoints=["main.ts"])).make_tag())

    assert "@react-refresh" not in tags
    assert '<script type="module" src="http://localhost:5173/main.ts"></script>' in tags


def test_react_detected_from_package_json(project_dir: Path) -> None:
    (project_dir / "package.json").write_text(json.dumps({"dependencies": {"react": "^19.0.0"}}))

    assert Vite(ViteOptions(entrypoints=["main.ts"])).uses_react()


def test_react_refresh_default_url(project_dir: Path) -> None:
    assert f"{DEFAULT_DEV_SERVER_URL}/@react-refresh" in Vite().react_refresh()
