"""Document-to-quiz generation service."""

__version__ = "0.1.0"
