"""Red Door core: mode-gated matching and messaging."""

__version__ = "0.1.0"
