"""
Event journal and integrity verification.

- EventStore: Abstract interface for event persistence
- MemoryEventStore: In-process journal
- FileEventStore: File-based append-only storage (JSONL)
- Integrity: Hash chain construction and verification
"""

from .store import EventStore, AppendResult
from .memory_store import MemoryEventStore
from .file_store import FileEventStore
from .integrity import ZERO_HASH, ChainReport, chain_record, hash_event, verify_chain

__all__ = [
    "EventStore",
    "AppendResult",
    "MemoryEventStore",
    "FileEventStore",
    "ZERO_HASH",
    "ChainReport",
    "chain_record",
    "hash_event",
    "verify_chain",
]
