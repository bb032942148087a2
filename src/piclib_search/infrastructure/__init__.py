"""Infrastructure layer: HTTP clients, LibreY mirrors, content hosts."""
