"""SubTidy: subtitle acquisition and track normalization for finished downloads."""

__version__ = "0.4.0"
