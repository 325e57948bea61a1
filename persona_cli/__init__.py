"""
persona CLI - Personality Evolution Engine

Commands:
- persona interact / batch - apply interactions against the journal
- persona show - current personality of one entity
- persona log tail/inspect/verify - journal operations
- persona replay - rebuild state from the journal
"""

__version__ = "0.1.0"
