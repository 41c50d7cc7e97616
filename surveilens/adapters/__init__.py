"""Concrete implementations of the outbound ports."""
