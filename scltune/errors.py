"""Exception hierarchy for scale, keyboard mapping and tuning failures."""


class TuningError(ValueError):
    """Base class for every error raised by scltune."""


class ParseError(TuningError):
    """
    Malformed SCL or KBM content.

    Attributes:
        lineno: 1-based line number of the offending line, when known.
        line:   The offending line with trailing whitespace removed.
    """

    def __init__(self, message: str, lineno: int | None = None, line: str | None = None) -> None:
        super().__init__(message)
        self.lineno = lineno
        self.line = line


class BuildError(TuningError):
    """A Scale and KeyboardMapping pair that cannot be compiled into a Tuning."""
