"""Exceptions raised by the command system."""


class PrefixKitError(Exception):
    """Base class for errors raised by prefixkit."""


class CommandNotImplementedError(PrefixKitError, NotImplementedError):
    def __init__(self, command_id: str) -> None:
        super().__init__(f"Command {command_id} has no exec")
        self.command_id = command_id


class CommandRegistrationError(PrefixKitError):
    """A command id or alias is already taken."""

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message)
        self.name = name


class InhibitorNotImplementedError(PrefixKitError, NotImplementedError):
    def __init__(self, inhibitor_id: str) -> None:
        super().__init__(f"Inhibitor {inhibitor_id} has no exec")
        self.inhibitor_id = inhibitor_id


class InhibitorRegistrationError(PrefixKitError):
    """An inhibitor id is already taken."""

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message)
        self.name = name
