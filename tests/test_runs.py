#!/usr/bin/env python3
"""
Tests for run production.
"""

import unittest
import tempfile
import shutil
import os
import random
from big_file_sort import produce_runs, RunLayout
from big_file_sort.runs import sort_chunk


class TestSortChunk(unittest.TestCase):
    """Test in-place chunk sorting."""
    
    def test_sorts_in_place(self):
        chunk = bytearray([5, 3, 3, 1, 9, 2, 255, 0])
        sort_chunk(chunk)
        self.assertEqual(chunk, bytearray([0, 1, 2, 3, 3, 5, 9, 255]))
    
    def test_random_chunk(self):
        data = bytes(random.getrandbits(8) for _ in range(1000))
        chunk = bytearray(data)
        sort_chunk(chunk)
        self.assertEqual(bytes(chunk), bytes(sorted(data)))
    
    def test_empty_chunk(self):
        chunk = bytearray()
        sort_chunk(chunk)
        self.assertEqual(chunk, bytearray())


class TestProduceRuns(unittest.TestCase):
    """Test splitting a file into sorted runs."""
    
    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, "input.txt")
        self.scratch = os.path.join(self.temp_dir, "input.tmp.txt")
    
    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)
    
    def _write(self, data):
        with open(self.path, 'wb') as f:
            f.write(data)
    
    def _scratch_bytes(self):
        with open(self.scratch, 'rb') as f:
            return f.read()
    
    def test_chunks_sorted_independently(self):
        """Two-byte chunks are sorted one by one and laid out back-to-back."""
        self._write(bytes([5, 3, 3, 1, 9, 2]))
        
        layout = produce_runs(self.path, 2, self.scratch)
        
        self.assertEqual(layout.caches_num, 3)
        self.assertEqual(layout.file_length, 6)
        self.assertEqual(layout.cache_size, 2)
        self.assertEqual(self._scratch_bytes(), bytes([3, 5, 1, 3, 2, 9]))
    
    def test_short_final_run(self):
        """A remainder produces a shorter final run."""
        data = bytes(random.getrandbits(8) for _ in range(25))
        self._write(data)
        
        layout = produce_runs(self.path, 10, self.scratch)
        
        self.assertEqual(layout.caches_num, 3)
        self.assertEqual(layout.last_run_length, 5)
        self.assertEqual(layout.run_length(0), 10)
        self.assertEqual(layout.run_length(2), 5)
        self.assertEqual(layout.run_offset(2), 20)
        
        scratch = self._scratch_bytes()
        self.assertEqual(len(scratch), 25)
        for start, end in [(0, 10), (10, 20), (20, 25)]:
            self.assertEqual(scratch[start:end], bytes(sorted(data[start:end])))
    
    def test_single_byte_final_run(self):
        data = bytes(range(9, -1, -1)) + b"\x07"
        self._write(data)
        
        layout = produce_runs(self.path, 5, self.scratch)
        
        self.assertEqual(layout.caches_num, 3)
        self.assertEqual(layout.last_run_length, 1)
        self.assertEqual(self._scratch_bytes(), bytes([5, 6, 7, 8, 9, 0, 1, 2, 3, 4, 7]))
    
    def test_exact_multiple(self):
        self._write(b"dcbahgfe")
        
        layout = produce_runs(self.path, 4, self.scratch)
        
        self.assertEqual(layout.caches_num, 2)
        self.assertEqual(layout.last_run_length, 4)
        self.assertEqual(self._scratch_bytes(), b"abcdefgh")
    
    def test_empty_file(self):
        self._write(b"")
        
        layout = produce_runs(self.path, 4, self.scratch)
        
        self.assertEqual(layout.caches_num, 0)
        self.assertEqual(layout.file_length, 0)
        self.assertEqual(layout.last_run_length, 0)
        self.assertEqual(self._scratch_bytes(), b"")
    
    def test_rejects_non_positive_cache(self):
        self._write(b"abc")
        with self.assertRaises(ValueError):
            produce_runs(self.path, 0, self.scratch)
    
    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            produce_runs(os.path.join(self.temp_dir, "missing"), 4, self.scratch)
        self.assertFalse(os.path.exists(self.scratch))


if __name__ == "__main__":
    unittest.main()
