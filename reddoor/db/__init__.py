"""Durable storage for engine snapshots (SQLAlchemy async)."""
