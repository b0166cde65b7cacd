"""Exception types raised while loading and solving zebra puzzles."""


class PuzzleError(Exception):
    """Base class for every solver error."""


class ParseError(PuzzleError, ValueError):
    """A constraint expression or puzzle record does not match the expected grammar."""


class BoundsError(PuzzleError):
    """A house or value index fell outside ``[0, N)``; this is a configuration defect."""


class ConflictError(PuzzleError):
    """The store was asked to hold two contradictory facts about one slot."""


class UnsatisfiableError(PuzzleError):
    """Every candidate on every branch has been exhausted."""


class IncompleteSolutionError(PuzzleError):
    """A solution was requested from a store that still has unresolved slots."""
