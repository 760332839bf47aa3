"""
Activity tracker for game-server communities.

The ``core`` subpackage holds the user directory, presence state machine
and view authorization engine.
"""

__version__ = "0.1.0"
