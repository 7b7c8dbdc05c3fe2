"""toolsIA image pipeline: enhance, remove background, compress."""

__version__ = "0.1.0"
