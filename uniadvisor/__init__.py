"""Canadian university advisor backend."""

__version__ = "0.3.0"
