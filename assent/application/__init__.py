"""Application layer: services operating on domain models through ports."""
