"""API route modules."""
from __future__ import annotations

from songtab.api.routes import auth, health, songs, tabs, videos

__all__ = ["auth", "health", "songs", "tabs", "videos"]
