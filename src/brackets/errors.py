"""
Exceptions raised by the bracket engine.
"""


class BracketError(Exception):
    """Base class for bracket engine errors."""

    status_code = 400

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class InvalidInputError(BracketError):
    """Raised when a bracket cannot be built from the given input."""
    status_code = 400


class NodeNotFoundError(BracketError):
    """Raised when a match id does not exist in the bracket."""
    status_code = 404

    def __init__(self, match_id):
        super().__init__(f"Match {match_id} not found")
        self.match_id = match_id


class SlotNotFillableError(BracketError):
    """Raised when scoring a match whose participants are not both known yet."""
    status_code = 409

    def __init__(self, match_id):
        super().__init__(f"Match {match_id} is still waiting for a participant")
        self.match_id = match_id


class InvalidScoreError(BracketError):
    """Raised for scores that are not non-negative integers."""
    status_code = 400


class BracketIntegrityError(BracketError, AssertionError):
    """Raised when a bracket's links are inconsistent. Always a builder bug."""
    status_code = 500
