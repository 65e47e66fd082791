"""Snapshot parsing, durable stores, the background writer and retention sweeps."""
