"""Feedboard: authored posts behind token authentication."""
