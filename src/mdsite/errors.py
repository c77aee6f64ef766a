"""Build error taxonomy; every error aborts the build that raised it"""

from pathlib import Path


class BuildError(Exception):
    """Base class for content and configuration errors that fail a build."""

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


class ConfigurationError(BuildError):
    """Missing input directories or an unsafe destination."""


class MalformedFrontMatter(BuildError):
    """The metadata block is absent, unterminated, not YAML, or holds a bad value."""


class MissingRequiredField(BuildError):
    """A required front-matter field is absent or empty."""

    def __init__(self, field: str, path: Path | str | None = None):
        self.field = field
        super().__init__(f"missing required front-matter field '{field}'", path)


class UnknownLayout(BuildError):
    """The requested layout has no matching template."""

    def __init__(self, layout: str, path: Path | str | None = None):
        self.layout = layout
        super().__init__(f"unknown layout '{layout}'", path)


class TemplateSubstitutionError(BuildError):
    """A layout references a slot the page context does not provide."""


class PathCollision(BuildError):
    """Two outputs resolve to the same path in the generated site."""

    def __init__(self, output_path: str, sources: tuple):
        self.output_path = output_path
        self.sources = sources
        first, second = sources
        super().__init__(f"output path '{output_path}' produced by both {first} and {second}", second)


class AssetCopyFailure(BuildError):
    """A static asset could not be copied after bounded retries."""
