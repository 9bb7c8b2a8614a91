"""Resolve and validate deployment configuration for the chatbot stack."""

__version__ = "0.1.0"
