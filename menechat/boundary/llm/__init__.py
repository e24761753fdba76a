"""
Completion service boundary.

Exports:
  - GeminiCompletionClient: google-genai backed completion client
"""

from menechat.boundary.llm.gemini_client import GeminiCompletionClient

__all__ = ["GeminiCompletionClient"]
