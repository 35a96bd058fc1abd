"""Domain layer: models, errors and hashing primitives.

Nothing in this layer performs I/O or reads the clock.
"""
