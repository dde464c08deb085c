"""Litestar-Inertia exception classes."""

__all__ = [
    "InvalidManifestError",
    "LitestarInertiaError",
    "SSRError",
]


class LitestarInertiaError(Exception):
    """Base exception for Litestar-Inertia related errors."""


class InvalidManifestError(LitestarInertiaError):
    """Raised when a manifest file exists but cannot be parsed."""

    def __init__(self, manifest_path: str, reason: str) -> None:
        """Initialize the exception.

        Args:
            manifest_path: Path of the offending manifest.
            reason: Parser error message.
        """
        super().__init__(f"Manifest at {manifest_path!r} is not valid JSON: {reason}")
        self.manifest_path = manifest_path


class SSRError(LitestarInertiaError):
    """Raised when the SSR server cannot produce a usable render."""

    def __init__(self, url: str, message: str, status_code: "int | None" = None) -> None:
        super().__init__(f"SSR request to {url!r} failed: {message}")
        self.url = url
        self.status_code = status_code
