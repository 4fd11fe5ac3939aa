"""Security cross-cutting concerns: headers middleware and rate limiting."""
