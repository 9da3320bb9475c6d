"""Exception types raised by performkit."""


class DocumentError(ValueError):
    """An input document is structurally unusable (bad XML, missing performance, ...)."""


class ParameterError(ValueError):
    """A scaling factor or parameter document violates the caller contract."""
