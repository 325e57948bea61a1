"""
Test suite for the personality engine.

Focus areas:
- Trait clamping and interaction counting
- Guard ordering (ownership before cooldown)
- Batch atomicity, both modes
- Per-entity serialization under threads
- Journal integrity and replay determinism
"""
