"""
chunkwise: bounded, overlap-controlled text chunking with a content-addressed
ingestion cache.
"""

__version__ = "0.1.0"
