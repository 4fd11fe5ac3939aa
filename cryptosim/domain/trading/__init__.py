"""
Trading bounded context, domain layer.

Simulated binary-option orders: opening, settlement, cancellation
and per-user trading statistics.
"""
