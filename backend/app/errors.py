# backend/app/errors.py


class ConfigurationError(RuntimeError):
    """A required credential or setting is missing or invalid."""


class ExternalServiceError(RuntimeError):
    """An outbound call failed. Always absorbed by a fallback."""


class InferenceError(ExternalServiceError):
    pass


class RecommendationServiceError(ExternalServiceError):
    pass
