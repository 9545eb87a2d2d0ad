"""
Exceptions raised when malformed input reaches the engine.

Missing things (unknown match ids, no slot to progress into) are not errors:
those calls return their input unchanged.
"""


class BracketError(ValueError):
    """Base class for rejected bracket input."""


class DuplicateCompetitorError(BracketError):
    def __init__(self, competitor_ids):
        self.competitor_ids = sorted(competitor_ids)
        super().__init__(f"Duplicate competitor ids: {', '.join(map(str, self.competitor_ids))}")


class UnknownFormatError(BracketError):
    def __init__(self, bracket_format):
        self.bracket_format = bracket_format
        super().__init__(f"Unknown bracket format: {bracket_format}")


class InvalidResultError(BracketError):
    """A result names a winner who is not playing in the match."""


class BracketLockedError(BracketError):
    """An edit targeted a slot or bracket that has been locked."""


class SlotConflictError(BracketError):
    """One competitor would occupy more than one slot in a round."""

    def __init__(self, conflicts):
        self.conflicts = conflicts
        details = ', '.join(f"{player_id} in round {round_number}" for round_number, player_id in conflicts)
        super().__init__(f"Competitors placed more than once: {details}")
