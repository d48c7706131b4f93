class TopflowError(Exception):
    """Base class for exceptions in the topflow package."""

    pass


class ConfigurationError(TopflowError):
    """Exception raised for configuration-related errors."""

    pass


class ParserStateError(TopflowError):
    """Exception raised when a parser is driven out of order (e.g. read twice)."""

    pass


class InternalCodeError(TopflowError):
    """Exception raised for errors in the internal code."""

    pass


class ParsingError(TopflowError):
    """Exception raised for errors during topology parsing."""

    pass


class PreprocessorError(ParsingError):
    """Exception raised for malformed conditional directives (#else/#endif)."""

    def __init__(self, message: str, filename: str | None = None, line_no: int | None = None):
        self.filename = filename
        self.line_no = line_no
        if filename is not None and line_no is not None:
            message = f"{message} (line {line_no} in file {filename})"
        super().__init__(message)


class IncludeError(ParsingError):
    """Exception raised when an #include target cannot be resolved or read."""

    def __init__(self, message: str, target: str | None = None):
        self.target = target
        super().__init__(message)


class MoleculeOrderError(ParsingError):
    """Exception raised when a [ moleculetype ] appears after the system definition."""

    pass
