"""Exceptions raised inside the resolution pipeline."""


class TomeError(Exception):
    """Base class for all tome errors."""


class SourceDirectoryMissing(TomeError):
    """The configured root directory does not exist. Aborts the whole run."""


class DocumentUnreadable(TomeError):
    """The embedded metadata block of a document could not be parsed."""

    def __init__(self, path, reason: str = ""):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}" if reason else f"Cannot read {path}")


class RenderFailure(TomeError):
    """A page could not be rendered to an image."""


class VisionUnavailable(TomeError):
    """The vision model cannot be called (missing credential or API error)."""
