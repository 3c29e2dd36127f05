class HydroHubError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(HydroHubError):
    status_code = 400


class Forbidden(HydroHubError):
    status_code = 403


class NotFound(HydroHubError):
    status_code = 404


class Conflict(HydroHubError):
    status_code = 409
