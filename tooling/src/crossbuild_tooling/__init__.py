"""Cross-compile uv/uvx for a closed set of linux platforms and package them into a scratch image."""

__version__ = "0.1.0"
