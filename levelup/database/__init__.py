"""Persistence schema."""
