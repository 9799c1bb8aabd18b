class RegistryError(Exception):
    """Base class for short-code registry failures."""


class InvalidInput(RegistryError):
    """A caller-supplied field violates a constraint."""


class NotFound(RegistryError):
    """The short code is absent from the requested namespace."""

    def __init__(self, namespace: str, code: str):
        self.namespace = namespace
        self.code = code
        super().__init__(f"{code!r} not found in {namespace}")


class CodeSpaceExhausted(RegistryError):
    """No unused code was found within the retry budget."""


class RandomSourceUnavailable(RegistryError):
    """The OS entropy source could not be read."""
