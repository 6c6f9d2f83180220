"""
audiosplitter.exceptions - Custom exception classes.

All Audiosplitter-specific exceptions inherit from AudioSplitterError.
"""


class AudioSplitterError(Exception):
    """Base exception for all Audiosplitter errors."""

    pass


class ConfigError(AudioSplitterError):
    """Configuration loading or validation error."""

    pass


class ValidationError(AudioSplitterError):
    """Input file validation error."""

    pass


class ProbeError(AudioSplitterError):
    """Media probing error."""

    pass


class SplitError(AudioSplitterError):
    """Audio splitting error."""

    pass


class DependencyError(AudioSplitterError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
