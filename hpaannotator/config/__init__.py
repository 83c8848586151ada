"""Bundled configuration resources and policy constants."""
