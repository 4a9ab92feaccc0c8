"""Locale catalogues bundled with the backend."""
