"""Application exceptions.

Services raise these; ``main.py`` turns them into the JSON error envelope
``{"success": false, "message": ..., "code": ...}``.
"""

from typing import Any, Optional


class AppError(Exception):
    status_code = 400
    code = "APP_ERROR"
    # Extra response headers, e.g. WWW-Authenticate on a 401
    headers: Optional[dict[str, str]] = None

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, "code": self.code}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.field:
            payload["field"] = self.field
        return payload


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class PermissionDeniedError(AppError):
    status_code = 403
    code = "PERMISSION_DENIED"


class DuplicateOperationError(AppError):
    """Raised when a (bank, operation number) pair is already registered."""

    status_code = 409
    code = "DUPLICATE_OPERATION"

    def __init__(self, message: str, existing: Any = None):
        super().__init__(message)
        self.existing = existing

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.existing is not None:
            payload["existingReceiptId"] = self.existing.id
        return payload


class StoreUnavailableError(AppError):
    status_code = 503
    code = "STORE_UNAVAILABLE"


# Identity provider codes -> (HTTP status, localized message)
IDENTITY_ERRORS: dict[str, tuple[int, str]] = {
    "INVALID_CREDENTIAL": (401, "Email o contraseña incorrectos."),
    "TOO_MANY_REQUESTS": (429, "Demasiados intentos fallidos. Intenta más tarde."),
    "WEAK_PASSWORD": (400, "La contraseña debe tener al menos {min_length} caracteres"),
    "EMAIL_ALREADY_IN_USE": (409, "El email ya está registrado.\nUse otro email o recupere la contraseña."),
    "INVALID_EMAIL": (400, "Email inválido"),
    "PROFILE_NOT_FOUND": (404, "Usuario no encontrado en el sistema."),
    "NOT_AUTHENTICATED": (401, "Sesión inválida o expirada."),
}


class IdentityError(AppError):
    code = "IDENTITY_ERROR"

    def __init__(self, code: str, **params: Any):
        status_code, template = IDENTITY_ERRORS.get(
            code, (400, "Error al iniciar sesión. Verifica tus credenciales.")
        )
        super().__init__(template.format(**params), code=code, status_code=status_code)
