"""WebSocket chat room with bcrypt accounts and RSA-encrypted private messages."""

__version__ = "0.1.0"

__all__ = ["__version__"]