"""Cross-cutting concerns shared by every bounded context."""
