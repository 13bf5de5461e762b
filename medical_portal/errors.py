from __future__ import annotations


class PortalError(Exception):
    """Base per tutti gli errori di dominio riportati al chiamante."""

    kind = "portal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(PortalError):
    """Campo obbligatorio mancante/vuoto, valore fuori range, riferimento non valido."""

    kind = "validation_error"


class NotFoundError(PortalError):
    kind = "not_found"


class InvalidTransitionError(PortalError):
    """Cambio di stato dell'appuntamento non previsto dalla macchina a stati."""

    kind = "invalid_transition"


class AuthorizationError(PortalError):
    kind = "authorization_error"
