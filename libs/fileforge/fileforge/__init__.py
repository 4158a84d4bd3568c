"""FileForge: upload, compress and convert media files through external engines."""

__version__ = "0.1.0"
