# Record store backends package
# Contains implementations of the RecordStore interface

from .memory import InMemoryRecordStore

__all__ = ["InMemoryRecordStore"]
