"""Low-level protocol helpers."""
