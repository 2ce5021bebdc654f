"""Tipi operator CLI."""
