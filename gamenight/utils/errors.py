# gamenight/utils/errors.py
# Перевод результатов сервисов в HTTP-ответы. Сервисы про HTTP не знают.

from typing import Dict

from fastapi import HTTPException
from starlette import status

from gamenight.services.results import ErrorCode

STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.not_authenticated: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.not_found: status.HTTP_404_NOT_FOUND,
    ErrorCode.invalid_credential: status.HTTP_400_BAD_REQUEST,
    ErrorCode.expired: status.HTTP_410_GONE,
    ErrorCode.invalid_input: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorCode.store_failure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _err(code: str, message: str) -> Dict[str, str]:
    return {"code": code, "message": message}


def raise_for_result(result) -> None:
    """result: InviteResult / SessionLogResult; при ok=False бросает HTTPException."""
    if result.ok:
        return
    raise HTTPException(
        status_code=STATUS_BY_CODE.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR),
        detail=_err(result.error.value, result.message or result.error.value),
    )
