"""Shared infrastructure: configuration, logging, results, ports and locks."""
