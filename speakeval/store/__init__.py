"""
speakeval.store - Database access for responses and questions.

The store is opened explicitly per run and closed when the run ends;
there is no process-wide ORM client.
"""

from __future__ import annotations

from speakeval.store.repository import ResponseStore, open_store

__all__ = ["ResponseStore", "open_store"]
