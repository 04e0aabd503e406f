"""State/store layer.

This package is the single source of truth for tracked instruments and the
alerts raised on them. Only the scanner's consumer loop mutates it; readers
take snapshots.
"""
