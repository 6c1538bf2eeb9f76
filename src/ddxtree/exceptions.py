class DataError(Exception):
    """Input data not in the expected format."""


class ConfigError(ValueError):
    """Invalid tree parameters or configuration file."""
