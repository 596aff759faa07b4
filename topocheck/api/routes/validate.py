"""Topology validation endpoint."""

from fastapi import APIRouter, Depends

from topocheck.api.deps import get_validation_service
from topocheck.models.schemas.validation import ValidateRequest, ValidateResponse
from topocheck.services.validation_service import ValidationService

router = APIRouter()


@router.post("", response_model=ValidateResponse)
def validate(
    request: ValidateRequest,
    validation_service: ValidationService = Depends(get_validation_service),
) -> ValidateResponse:
    """Run one topology rule on the posted layers."""
    return validation_service.validate(request)
