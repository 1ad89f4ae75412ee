"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Callable

from fastapi import Depends

from invoice_reverser.core.config import Settings, get_settings
from invoice_reverser.pipeline.services import StageServices

ServicesFactory = Callable[[], StageServices]


def get_services_factory(settings: Settings = Depends(get_settings)) -> ServicesFactory:
    """
    Deferred service construction.

    Triggers call the factory inside their own error handling so a broken
    device binding file is reported like any other stage failure.
    """
    return lambda: StageServices.from_settings(settings)


def get_services(factory: ServicesFactory = Depends(get_services_factory)) -> StageServices:
    return factory()
