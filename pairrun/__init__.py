"""pair-run: multi-language code execution dispatcher."""

__version__ = "1.0.0"
