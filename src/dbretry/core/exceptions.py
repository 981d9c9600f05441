class RetryConfigurationError(ValueError):
    """Raised before any attempt when retry parameters cannot be honoured.

    Attributes:
        message: Human-readable error description
        parameter: Name of the offending parameter, if any
    """
    def __init__(self, message: str, parameter: str | None = None):
        self.message = message
        self.parameter = parameter
        super().__init__(message)
