"""Generate API and configuration reference documentation from extracted declarations."""

__version__ = "0.3.0"
