"""switop terminal application."""
