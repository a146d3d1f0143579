"""Exception taxonomy for the totals engine.

Three kinds of failure exist and only two of them are exceptions:

* **Input errors** - :class:`EmptyInputError`.  Raised locally and never
  coerced into a default value.
* **Insufficient data** - *not* an exception.  Every strategy returns
  ``None`` and the engine falls through to the next one.
* **Collaborator failures** - :class:`CollaboratorError` and its
  :class:`HydrationError` subclass.  Adapters wrap driver/network errors in
  these so the engine can tell "the store is down" apart from a bug.
"""

from __future__ import annotations


class EmptyInputError(ValueError):
    """Raised when a percentile routine receives zero observations."""


class CollaboratorError(RuntimeError):
    """An external collaborator (game store, roster store) failed.

    Attributes:
        collaborator: Short name of the failing dependency, used in the
            engine's diagnostic label (e.g. ``"game_store"``).
    """

    def __init__(self, message: str, collaborator: str = "game_store"):
        super().__init__(message)
        self.collaborator = collaborator


class HydrationError(CollaboratorError):
    """The hydration fetcher failed or timed out."""

    def __init__(self, message: str):
        super().__init__(message, collaborator="hydration")
