"""Zenalyst analytics reporting backend."""
