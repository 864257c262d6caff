"""Rules engine for weekly pick-based fantasy contests."""

__version__ = "0.1.0"
