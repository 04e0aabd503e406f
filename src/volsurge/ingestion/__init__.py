"""Ingestion layer.

This package contains adapters that turn raw exchange payloads (REST
snapshots, combined stream messages) into normalized domain objects/events.
"""

__all__: list[str] = []
