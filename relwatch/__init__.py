"""relwatch: release deploy polling and crash-safe chat notifications."""

__version__ = "0.3.0"
