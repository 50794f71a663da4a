"""promptline: render a shell prompt from independent modules through a small template language."""

__version__ = "0.1.0"
