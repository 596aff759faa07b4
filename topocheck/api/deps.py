"""Dependency injection for routes."""

from fastapi import Depends

from topocheck.config import Settings, get_settings
from topocheck.services.validation_service import ValidationService


def get_validation_service(
    settings: Settings = Depends(get_settings),
) -> ValidationService:
    return ValidationService(settings)
