"""HTTP API for Songtab."""
