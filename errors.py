# errors.py
# Error taxonomy for the scan pipeline.
# Critical path errors (InvalidInput, Inference*) reach the user,
# PersistenceFailure is only ever logged.


class EcoSnapError(Exception):
    status_code = 500
    user_message = "Something went wrong."

    def __init__(self, message=None):
        super().__init__(message or self.user_message)
        self.message = message or self.user_message


class InvalidInput(EcoSnapError):
    """Empty, missing or malformed image (or form field)."""
    status_code = 400
    user_message = "Invalid image file."


class InferenceContractViolation(EcoSnapError):
    """The model answered, but not with a valid {binColor, ecoFact} object."""
    status_code = 502
    user_message = "Failed to analyze image."


class InferenceUnavailable(EcoSnapError):
    """Transport or model failure, or no API key configured."""
    status_code = 502
    user_message = "Failed to analyze image."


class AuthFailure(EcoSnapError):
    status_code = 401
    user_message = "Authentication failed."


class PersistenceFailure(EcoSnapError):
    user_message = "Could not save your progress."
