"""Interactive browser for login items, background items and system extensions."""
