"""Common Appium options exceptions."""


class AppiumOptionsError(Exception):
    """Base for all Appium options exceptions."""

    @property
    def cause(self) -> BaseException | None:
        """Cause of the exception.

        This is the same as ``Exception.__cause__``.
        """
        return self.__cause__


class InvalidArgumentError(AppiumOptionsError, ValueError):
    """Raised when an option name or value is not acceptable.

    This covers missing or empty option names, names already claimed by a
    typed option, and typed options given a value of the wrong kind.

    Attributes:
        argument: Name of the offending argument, if known.
    """

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        """Initialize an invalid argument error."""
        super().__init__(message)
        self.argument = argument


class ConfigError(AppiumOptionsError):
    """Raised when option profiles cannot be loaded from configuration."""
