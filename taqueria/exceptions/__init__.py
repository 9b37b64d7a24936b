"""Custom exceptions for the taquería POS."""

class PosError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Ocurrió un error interno", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(PosError):
    """Invalid input to an operation. The caller's state is left unchanged."""
    def __init__(self, message, payload=None):
        super().__init__(message, 400, payload)

class InvalidStateError(PosError):
    """Operation not allowed in the current state (e.g. a closed shift)."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)

class NotFoundError(PosError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Recurso no encontrado", payload=None):
        super().__init__(message, 404, payload)

class UnauthorizedError(PosError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Acceso no autorizado", status_code=403):
        super().__init__(message, status_code)
