"""
Ошибки модуля учёта активов. Каждая знает свой HTTP статус.

Сервисы бросают их вместо HTTPException: одни и те же функции вызываются
из роутов и из bulk-операций, где ошибка строки уходит в отчёт, а не в ответ.
В HTTP ответ их превращает обработчик в backend/main.py.
"""
from typing import List, Optional


class AssetError(Exception):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[dict]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationFailed(AssetError):
    status_code = 400


class PermissionDenied(AssetError):
    status_code = 403


class NotFound(AssetError):
    status_code = 404


class Conflict(AssetError):
    status_code = 409


class InsufficientStock(Conflict):
    pass
