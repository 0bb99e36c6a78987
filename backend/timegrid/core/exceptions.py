class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class StructuralError(AppError):
    """Raised when an uploaded workbook is missing a mandatory sheet/column or holds an invalid day."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class UpstreamSolverError(AppError):
    """Raised when the external solver answers with a failure or an unreadable body."""
    def __init__(self, message: str, details: dict = None, status_code: int = 502):
        super().__init__(message, status_code=status_code, details=details)

class SolverUnavailableError(UpstreamSolverError):
    """Raised when the external solver cannot be reached at all."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, details=details, status_code=503)

