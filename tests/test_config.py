#!/usr/bin/env python3
"""
Tests for SortConfig.
"""

import unittest
from unittest import mock
from big_file_sort import SortConfig, MergeStrategy, max_file_size, BudgetTooSmallError


class TestSortConfig(unittest.TestCase):
    """Test configuration resolution."""
    
    def setUp(self):
        """Set up test environment."""
        SortConfig.set_defaults(
            cache_size=None,
            memory_fraction=0.1,
            min_cache_size=2,
            max_cache_size=256 * 1024 * 1024,
            merge_strategy=MergeStrategy.ADAPTIVE,
            heap_fan_in=16
        )
        self.config = SortConfig.get_instance()
    
    def test_singleton(self):
        self.assertIs(SortConfig.get_instance(), self.config)
    
    def test_explicit_cache_size_wins(self):
        SortConfig.set_defaults(cache_size=128)
        self.assertEqual(self.config.resolve_cache_size(64), 64)
        self.assertEqual(self.config.resolve_cache_size(), 128)
    
    @mock.patch("big_file_sort.config.psutil.virtual_memory")
    def test_cache_size_from_available_memory(self, virtual_memory):
        """Without a configured budget a fraction of free RAM is used."""
        virtual_memory.return_value = mock.Mock(available=10_000)
        self.assertEqual(self.config.resolve_cache_size(), 1000)
        
        virtual_memory.return_value = mock.Mock(available=5)
        self.assertEqual(self.config.resolve_cache_size(), 2)
        
        virtual_memory.return_value = mock.Mock(available=10 ** 12)
        self.assertEqual(self.config.resolve_cache_size(), 256 * 1024 * 1024)
    
    def test_strategy_string_is_converted(self):
        SortConfig.set_defaults(merge_strategy="heap")
        self.assertEqual(self.config.merge_strategy, MergeStrategy.HEAP)
    
    def test_resolve_strategy(self):
        self.assertEqual(self.config.resolve_strategy(16), MergeStrategy.LINEAR_SCAN)
        self.assertEqual(self.config.resolve_strategy(17), MergeStrategy.HEAP)
        self.assertEqual(
            self.config.resolve_strategy(100, MergeStrategy.LINEAR_SCAN),
            MergeStrategy.LINEAR_SCAN
        )
    
    def test_unknown_keys_ignored(self):
        SortConfig.set_defaults(no_such_option=1)
        self.assertFalse(hasattr(self.config, "no_such_option"))
    
    def test_max_file_size(self):
        self.assertEqual(max_file_size(64), 64 * 63)
        self.assertEqual(max_file_size(1), 1)
    
    def test_format_bytes(self):
        self.assertEqual(self.config.format_bytes(512), "512.00 B")
        self.assertEqual(self.config.format_bytes(2048), "2.00 KB")


class TestBudgetTooSmallError(unittest.TestCase):
    """Test the budget error message and suggestion."""
    
    def test_required_cache_size(self):
        err = BudgetTooSmallError(cache_size=64, caches_num=157, file_length=10_000)
        # 101 * 100 >= 10_000 > 100 * 99
        self.assertEqual(err.required_cache_size, 101)
        self.assertIn("101", str(err))
        self.assertLessEqual(10_000, max_file_size(err.required_cache_size))


if __name__ == "__main__":
    unittest.main()
