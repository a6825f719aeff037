"""Embedded key-value store adapter."""
