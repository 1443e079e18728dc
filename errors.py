# errors.py
from typing import Optional


class AicTuiError(Exception):
    """Base class for every error raised by the application."""


class PipelineError(AicTuiError):
    """A recoverable failure while turning an artwork into an ASCII frame."""
    label = "Render failed"

    def __init__(self, message: str, generation: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.generation = generation

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"


class NetworkError(PipelineError):
    label = "Network error"


class DecodeError(PipelineError):
    label = "Could not decode image"


class NotFoundError(PipelineError):
    label = "Not found"


class TerminalError(AicTuiError):
    """The terminal could not be driven. Fatal."""


class StartupError(AicTuiError):
    """The application could not start. Fatal."""


class ConfigError(StartupError):
    """Invalid configuration from the environment, settings file or flags."""
