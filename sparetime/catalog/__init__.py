"""
Source catalog.

Responsibilities:
- Hold the traveler's candidate places ("sources") in insertion order.
- Give readers a consistent snapshot while adds and removes happen.
- Import a whole trip file into catalog records.
- Never react to category exclusions; forgetting hides, it does not delete.
"""
