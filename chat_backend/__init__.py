"""Chat backend: user registration, chat history and feedback over REST and WebSocket."""

__version__ = "0.1.0"
