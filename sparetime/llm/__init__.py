"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build the travel-assistant prompt from sources, exclusions and recalled preferences.
- Call Groq for messages the local router does not handle.
- Graceful fallback when the LLM is unavailable or returns nothing.
"""
