"""USB transport adapters."""
