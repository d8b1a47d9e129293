"""Error kinds raised by the service layer and mapped to HTTP responses in main."""


class ResumeBuilderError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFoundError(ResumeBuilderError):
    """Missing user, resume, version, section or share URL"""
    status_code = 404


class UnauthorizedError(ResumeBuilderError):
    """Requester does not own the resume"""
    status_code = 403


class ValidationFailure(ResumeBuilderError):
    status_code = 422


class ExternalServiceError(ResumeBuilderError):
    """AI call, storage upload or PDF render failed"""
    status_code = 502
