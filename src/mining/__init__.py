"""Frequent subsequence mining over symbolic event sequences.

Provides a prefix-tree pattern index, bounded contiguous and non-contiguous
subsequence enumeration, and a mining engine that ranks patterns by
frequency and support.
"""
