"""Database package for the primary deck document store."""
