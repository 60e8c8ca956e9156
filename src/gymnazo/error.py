"""Exceptions raised by gymnazo.

Every error derives from :class:`GymnazoError` and from the builtin
exception that best describes it, so ``except ValueError`` keeps working
for callers that do not know about this module.
"""

from __future__ import annotations


class GymnazoError(Exception):
    """Base class for all gymnazo errors."""


# ---------------------------------------------------------------------------
# Construction-time errors
# ---------------------------------------------------------------------------


class InvalidConfiguration(GymnazoError, ValueError):
    """A constructor argument is out of range or inconsistent."""


class InvalidSpace(GymnazoError, ValueError):
    """An inner environment's declared space does not meet a requirement."""


class UnsupportedSpace(GymnazoError, NotImplementedError):
    """No flattening strategy exists for a space kind."""


class RegistrationError(GymnazoError, ValueError):
    """An environment id is malformed or registered twice."""


class UnregisteredEnv(GymnazoError, KeyError):
    """No environment is registered under the requested id."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


# ---------------------------------------------------------------------------
# Usage errors
# ---------------------------------------------------------------------------


class ResetNeeded(GymnazoError, RuntimeError):
    """``step`` or ``render`` called when the episode is not running."""


class InvalidAction(GymnazoError, ValueError):
    """An action is not a member of the action space."""


class InvalidObservation(GymnazoError, ValueError):
    """``reset`` or ``step`` returned a malformed result."""


class DuplicateInfoKey(GymnazoError, KeyError):
    """A wrapper would overwrite a key an inner env already put in ``info``."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
