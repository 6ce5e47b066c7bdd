"""
Configuration management for file sorting.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum
import psutil


class MergeStrategy(Enum):
    """Strategy for picking the smallest run head during a merge."""
    LINEAR_SCAN = "linear_scan"
    HEAP = "heap"
    ADAPTIVE = "adaptive"


@dataclass
class SortConfig:
    """Global configuration for file sorting."""
    
    # Memory budget
    cache_size: Optional[int] = None  # None derives it from available RAM
    memory_fraction: float = 0.1
    min_cache_size: int = 2
    max_cache_size: int = 256 * 1024 * 1024
    
    # Path naming: <stem>.<tag><suffix>
    scratch_tag: str = "tmp"
    output_tag: str = "out"
    
    # Merge
    merge_strategy: MergeStrategy = MergeStrategy.ADAPTIVE
    heap_fan_in: int = 16  # ADAPTIVE switches to a heap above this many runs
    fsync_output: bool = True
    
    _instance: Optional['SortConfig'] = None
    
    @classmethod
    def get_instance(cls) -> 'SortConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance
    
    @classmethod
    def set_defaults(cls, **kwargs) -> None:
        """Set default configuration values."""
        instance = cls.get_instance()
        for key, value in kwargs.items():
            if key == 'merge_strategy' and isinstance(value, str):
                value = MergeStrategy(value)
            if hasattr(instance, key):
                setattr(instance, key, value)
    
    def resolve_cache_size(self, cache_size: Optional[int] = None) -> int:
        """Pick the memory budget: explicit value, configured value, then RAM based."""
        if cache_size is not None:
            return cache_size
        if self.cache_size is not None:
            return self.cache_size
        
        available = psutil.virtual_memory().available
        derived = int(available * self.memory_fraction)
        return max(self.min_cache_size, min(derived, self.max_cache_size))
    
    def available_memory(self) -> int:
        """Bytes of RAM currently available to the process."""
        return psutil.virtual_memory().available
    
    def resolve_strategy(self, caches_num: int,
                         strategy: Optional[MergeStrategy] = None) -> MergeStrategy:
        """Turn ADAPTIVE into a concrete strategy for the given fan-in."""
        strategy = strategy or self.merge_strategy
        if strategy != MergeStrategy.ADAPTIVE:
            return strategy
        if caches_num > self.heap_fan_in:
            return MergeStrategy.HEAP
        return MergeStrategy.LINEAR_SCAN
    
    def format_bytes(self, bytes: int) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes < 1024.0:
                return f"{bytes:.2f} {unit}"
            bytes /= 1024.0
        return f"{bytes:.2f} PB"


def max_file_size(cache_size: int) -> int:
    """Largest input a single merge pass can handle with ``cache_size`` bytes.
    
    Each run needs at least one byte of sub-buffer plus one byte for the
    output buffer, so at most ``cache_size - 1`` runs of ``cache_size`` bytes.
    """
    if cache_size < 2:
        return 1
    return cache_size * (cache_size - 1)


# Global configuration instance
config = SortConfig.get_instance()
