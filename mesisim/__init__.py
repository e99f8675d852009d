"""Trace-driven simulator of four MESI-coherent L1 caches on a shared snooping bus."""

__version__ = "0.1.0"