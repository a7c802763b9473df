"""Stage option synthesis for declarative OS image builds."""

from .__version__ import __version__

__all__ = ["__version__"]
