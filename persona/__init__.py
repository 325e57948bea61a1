"""
Personality Evolution Engine

Event-sourced engine for per-entity personalities that evolve through
owner-authorized, rate-limited interactions with an auditable history.
"""

__version__ = "0.1.0"
