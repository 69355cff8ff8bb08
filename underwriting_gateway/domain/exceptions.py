"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class VendorAPIError(DomainException):
    """Background-check vendor API returned an error or is unavailable"""

    pass


class MalformedInputError(DomainException):
    """A field is present but cannot be parsed (bad date, bad number, impossible value)"""

    pass


class MissingRequiredFieldError(DomainException):
    """A field the policy marks mandatory is absent from the vendor record"""

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}")
        self.field = field


class PolicyConfigurationError(DomainException):
    """Thresholds or category policy are missing or invalid"""

    pass


class InvalidDecisionError(DomainException):
    """Authority routing was handed something that is not a well-formed Decision"""

    pass
