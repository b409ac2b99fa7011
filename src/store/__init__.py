"""Local blob storage layer.

This package maps blob handles onto a directory layout and implements
create-once writes, ranged reads, removal, and streaming enumeration.
"""
