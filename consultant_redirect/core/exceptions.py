"""
Domain exceptions for the redirect service.

Every error a caller can trigger derives from RedirectError and carries the
HTTP status and the short user-facing message the API layer returns as
``{"success": false, "error": message}``. Messages never include tokens,
database identifiers or stack traces.
"""

from typing import Optional


class RedirectError(Exception):
    """Base class for redirect failures that map to a client response."""

    status_code: int = 400
    code: str = 'redirect_error'
    default_message: str = 'Erro ao processar redirecionamento'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NoConsultantAvailable(RedirectError):
    """No active consultant and no backup number configured for the platform."""

    status_code = 404
    code = 'no_consultant_available'
    default_message = 'Nenhum consultor disponível no momento'


class MissingConfirmationFields(RedirectError):
    status_code = 400
    code = 'missing_fields'
    default_message = 'Token e número são obrigatórios'


class InvalidToken(RedirectError):
    """Token unknown, or issued for another platform or number."""

    status_code = 404
    code = 'invalid_token'
    default_message = 'Token inválido'


class TokenAlreadyUsed(RedirectError):
    status_code = 400
    code = 'token_already_used'
    default_message = 'Token já utilizado'


class TokenExpired(RedirectError):
    status_code = 400
    code = 'token_expired'
    default_message = 'Token expirado'


class StoreUnavailable(RedirectError):
    """
    The roster/reservation database cannot be reached.

    This is the only failure worth retrying, and only by the caller issuing a
    fresh request; the service itself never retries.
    """

    status_code = 500
    code = 'store_unavailable'
    default_message = 'Erro interno do servidor'
