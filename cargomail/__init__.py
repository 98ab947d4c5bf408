"""Cargomail sync backend: per-device delta sync for contacts, blobs, drafts and messages."""

__version__ = "1.0.0"
