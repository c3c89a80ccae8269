"""Shared infrastructure: configuration, logging, exceptions, database, utilities."""
