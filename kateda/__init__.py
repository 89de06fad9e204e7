"""Data availability block layout, erasure coding, reconstruction and an application-key registry."""

__version__ = "0.1.0"