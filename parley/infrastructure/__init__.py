"""Infrastructure Layer: database manager, Anthropic client and logging setup.

Invariants:
    - All external calls wrapped with timeout and error mapping to ParleyError subclasses

Design Decisions:
    - Resilient wrappers over raw clients
"""
