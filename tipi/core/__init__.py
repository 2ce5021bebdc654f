"""Tipi core: controllers, cache, events and supporting services."""
