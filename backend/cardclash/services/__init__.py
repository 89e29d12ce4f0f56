"""Match domain services: rooms, sessions and combat rules.

This package contains the in-memory game logic that the Socket.IO handlers
call into, keeping transport concerns separated from core game mechanics.
"""
