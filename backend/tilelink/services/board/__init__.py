"""Board domain services: path finding, collapse levels, move validation
and scoring.

This package holds pure board logic that is imported by the room manager,
keeping session and transport concerns separated from the game mechanics.
"""
