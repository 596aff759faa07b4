"""Custom exception classes."""

from fastapi import HTTPException, status


class TopocheckException(HTTPException):
    """Base exception for application errors."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        code: str = "TOPOCHECK_ERROR",
    ):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


class UnknownRuleError(TopocheckException):
    def __init__(self, rule_name: str):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown topology rule: {rule_name}",
            code="UNKNOWN_RULE",
        )


class MissingLayerError(TopocheckException):
    def __init__(self, rule_name: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Rule '{rule_name}' requires a second layer",
            code="MISSING_LAYER",
        )


class InvalidLayerError(TopocheckException):
    def __init__(self, errors: list[str]):
        self.errors = errors
        detail = f"Layer validation failed with {len(errors)} error(s): {'; '.join(errors[:5])}"
        if len(errors) > 5:
            detail += f" ... and {len(errors) - 5} more"
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            code="INVALID_LAYER",
        )


class LayerTooLargeError(TopocheckException):
    def __init__(self, layer_name: str, count: int, limit: int):
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Layer '{layer_name}' has {count} features (limit {limit})",
            code="LAYER_TOO_LARGE",
        )
