"""
Long-term memory integration.

Responsibilities:
- Manage memory-service configuration and credentials.
- Build the conversation records that mirror exclusions and sources.
- Call the remote memorize/retrieve endpoints.
- Dispatch mirror writes off the request path and swallow their failures.
"""
