"""execman — manage standalone executables installed from GitHub releases."""

__version__ = "0.1.0"
