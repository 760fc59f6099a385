"""Adapters layer - implementations of ports following Hexagonal Architecture.

Outbound adapters drive the embedded engine; the inbound facade exposes
the access layer as plain functions.
"""
