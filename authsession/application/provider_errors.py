from __future__ import annotations

from typing import NoReturn

from authsession.domain.errors import AuthFailure, ProviderUnavailable
from authsession.domain.result import ProviderError


def raise_for_provider_error(err: ProviderError, failure: type[AuthFailure]) -> NoReturn:
    """Unavailability is retryable and reported as such; anything else is `failure`."""
    if err.unavailable:
        raise ProviderUnavailable(err.message)
    raise failure(err.message)
