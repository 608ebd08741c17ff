"""tt: an AI-based terminal command helper."""

__version__ = "0.1.0"
