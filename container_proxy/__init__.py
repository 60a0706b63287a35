"""Docker Registry v2 proxy in front of GitHub Container Registry."""

__version__ = "0.1.0"
