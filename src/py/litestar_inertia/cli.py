from typing import TYPE_CHECKING

from click import group
from litestar.cli._utils import LitestarGroup  # pyright: ignore[reportPrivateImportUsage]

from litestar_inertia.__metadata__ import __project__, __version__
from litestar_inertia.version import detect_version, is_development_mode
from litestar_inertia.vite import Vite

if TYPE_CHECKING:
    from litestar import Litestar

    from litestar_inertia.plugin import InertiaPlugin

__all__ = ("collect_status", "inertia_group")


def _get_plugin(app: "Litestar") -> "InertiaPlugin":
    from litestar_inertia.plugin import InertiaPlugin

    return app.plugins.get(InertiaPlugin)


def collect_status(plugin: "InertiaPlugin") -> "list[tuple[str, str]]":
    """Describe the frontend build state seen by ``plugin``.

    Returns:
        ``(name, value)`` rows.
    """
    options = plugin.config.vite_options
    vite = Vite(options)
    public_dir = vite.public_dir
    ssr = plugin.config.ssr_config
    version = plugin.factory.get_version()

    return [
        (__project__, __version__),
        ("Public directory", str(public_dir)),
        ("Development mode", "yes" if is_development_mode(public_dir, options.hot_file) else "no"),
        ("Dev server", vite.hot_url() or "-"),
        ("Manifest", str(vite.manifest_path) if vite.manifest_path.exists() else "missing"),
        ("Detected version", detect_version(public_dir, options) or "-"),
        ("Asset version", version or "-"),
        ("SSR", ssr.url if ssr is not None else "disabled"),
    ]


@group(cls=LitestarGroup, name="inertia")
def inertia_group() -> None:
    """Inspect the Inertia integration."""


@inertia_group.command(name="version", help="Print the current asset version.")
def inertia_version(app: "Litestar") -> None:
    """Print the current asset version."""
    from litestar.cli._utils import console  # pyright: ignore[reportPrivateImportUsage]

    console.print(_get_plugin(app).factory.get_version() or "")


@inertia_group.command(name="status", help="Show the frontend build and SSR state.")
def inertia_status(app: "Litestar") -> None:
    """Show the frontend build and SSR state."""
    from litestar.cli._utils import console  # pyright: ignore[reportPrivateImportUsage]
    from rich.table import Table

    console.rule("[yellow]Inertia status[/]", align="left")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Check", style="dim")
    table.add_column("Value")
    for name, value in collect_status(_get_plugin(app)):
        table.add_row(name, value)
    console.print(table)
