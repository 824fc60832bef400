from .key_selector import KeySelector
from .memory_store import MemoryDatabase

__all__ = ["KeySelector", "MemoryDatabase"]
