"""Services Layer: stores and the resolution pipeline (the imperative shell).

Invariants:
    - Each store owns one aggregate (sessions, messages, resolutions, users)
    - Store methods take an AsyncSession; they never open their own connections

Design Decisions:
    - Pure rules live in core/; services sequence IO around them
"""
