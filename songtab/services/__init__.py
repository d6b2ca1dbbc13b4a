"""Services for Songtab."""
