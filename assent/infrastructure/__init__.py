"""Infrastructure adapters: clock, locking and observability."""
