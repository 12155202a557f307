"""Live host telemetry dashboard fed by a server-sent event stream."""

from .version import __version__

__all__ = ["__version__"]
