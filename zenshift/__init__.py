"""Zenshift REST backend."""
