"""Infrastructure Layer — IO adapters that implement the core Protocols.

Invariants:
    - Every adapter here satisfies a Protocol from core/repository_protocols.py
    - No business rules: date comparisons and capacity decisions live in core/
"""
