from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class ProviderError:
    """
    Normalised identity provider failure.

    unavailable=True means we never got an answer (network error, timeout,
    5xx), so the caller may retry. Anything else is a definitive rejection.
    """

    message: str
    status: int | None = None
    unavailable: bool = False


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: ProviderError


Result = Union[Ok[T], Err]
