"""MeneChat: multi-session chat client and API backed by Gemini."""

__version__ = "0.1.0"
