from typing import Any, List


class DiagnosisError(Exception):
    """Base class for request-terminal diagnosis failures."""


class ClientInputError(DiagnosisError):
    pass


class ModelOutputParseError(DiagnosisError):
    def __init__(self, raw: str):
        super().__init__("Failed to parse model response as JSON")
        self.raw = raw


class SchemaValidationError(DiagnosisError):
    def __init__(self, errors: List[str], parsed: Any):
        super().__init__("Model JSON failed schema validation")
        self.errors = errors
        self.parsed = parsed
