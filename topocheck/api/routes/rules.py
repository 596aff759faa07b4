"""Rule catalog endpoints."""

from fastapi import APIRouter, Depends

from topocheck.api.deps import get_validation_service
from topocheck.core.exceptions import UnknownRuleError
from topocheck.models.schemas.validation import RuleDescriptor, RuleListResponse
from topocheck.services.validation_service import ValidationService

router = APIRouter()


@router.get("", response_model=RuleListResponse)
def list_rules(
    validation_service: ValidationService = Depends(get_validation_service),
) -> RuleListResponse:
    """List every topology rule in registration order."""
    return validation_service.list_rules()


@router.get("/{rule_name}", response_model=RuleDescriptor)
def get_rule(
    rule_name: str,
    validation_service: ValidationService = Depends(get_validation_service),
) -> RuleDescriptor:
    """Describe a single rule."""
    for rule in validation_service.list_rules().rules:
        if rule.name == rule_name:
            return rule
    raise UnknownRuleError(rule_name)
