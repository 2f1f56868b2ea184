# tests/property/__init__.py
"""Property-based tests for DataCanvas.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of.

Test categories:
- core/: Graph store and gate state machine (edge integrity, propagation fixed point)
- engine/: Placeholder rewriting and table name derivation
"""
