"""Conference ticket catalogue, pricing and inventory reservation."""

__version__ = "1.0.0"
