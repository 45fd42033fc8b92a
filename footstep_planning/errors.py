class ConfigurationError(Exception):
    """Static misconfiguration detected while constructing a planner."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = errors or {}
