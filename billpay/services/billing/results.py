"""Outcome values returned by billing operations.

Handlers branch on the concrete type and map each one to an HTTP status.
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Success:
    value: Any


@dataclass(frozen=True)
class NotFound:
    """A referenced provider resource (customer, card) does not exist."""

    reason: str


@dataclass(frozen=True)
class UpstreamFailure:
    """The provider call failed for any other reason."""

    reason: str
    operation: str = ""


Result = Union[Success, NotFound, UpstreamFailure]
