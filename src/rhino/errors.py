"""Exceptions raised by rhino."""


class RhinoError(Exception):
    """Base class for errors that stop the dashboard."""

    subsystem = "rhino"

    def __str__(self) -> str:
        message = super().__str__()
        return f"{self.subsystem} error: {message}" if message else f"{self.subsystem} error"


class ConfigError(RhinoError):
    """An environment setting could not be parsed."""

    subsystem = "config"


class GpuUnavailableError(RhinoError):
    """No usable GPU or driver was found at startup."""

    subsystem = "gpu"


class GpuQueryError(RhinoError):
    """A per-cycle GPU query failed under the fatal failure policy."""

    subsystem = "gpu"


class TerminalError(RhinoError):
    """The output handle cannot be used to redraw the screen."""

    subsystem = "terminal"
