"""Infrastructure: cache backends and security helpers."""
