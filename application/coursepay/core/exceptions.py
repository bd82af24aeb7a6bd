class ConfigurationError(Exception):
    """Merchant credentials are missing or invalid; raised before any gateway call is attempted"""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []
