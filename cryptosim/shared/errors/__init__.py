"""Error handling: maps domain errors to HTTP responses."""
