"""Fates List widget rendering service."""
