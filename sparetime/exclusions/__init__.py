"""
Exclusion ledger.

Responsibilities:
- Own the set of categories the traveler asked to forget.
- Apply every change locally and synchronously before anything else.
- Mirror forget/restore to the memory service in the background.
- Compare the remote recollection with local state for diagnostics only.
"""
