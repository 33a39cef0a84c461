"""
Error types shared by the generation pipeline, the project store and the API
"""


class ZappError(Exception):
    """Base error; status_code is the HTTP status the API answers with"""

    status_code = 500


class InputValidationError(ZappError):
    status_code = 400


class UpstreamServiceError(ZappError):
    """Model or third-party API call failed"""

    status_code = 500


class MalformedOutputError(UpstreamServiceError):
    """Model answered, but the answer could not be extracted"""


class PersistenceError(ZappError):
    status_code = 500
