"""docwatch – web snapshot drift tracking and retrieval context assembly."""

__version__ = "0.1.0"
