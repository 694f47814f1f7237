"""One-way GitHub issue to YouTrack task synchronization"""

__version__ = "1.0.0"
