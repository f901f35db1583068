"""Desktop remote for Collection Remote (PyQt6)."""
