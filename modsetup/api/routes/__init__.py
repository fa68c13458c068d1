"""Route Modules — one file per concern."""
