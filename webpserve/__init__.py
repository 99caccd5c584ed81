"""Threaded HTTP server that serves an HTML page and a WebP image."""

__version__ = "0.1.0"
__all__ = ["server", "showip"]