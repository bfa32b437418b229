"""Conversation membership, listing and call bookkeeping for the chat backend."""

__version__ = "0.1.0"
