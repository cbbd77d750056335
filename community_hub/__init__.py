"""Application package for the community hub scheduling engine."""

__version__ = "1.0.0"
