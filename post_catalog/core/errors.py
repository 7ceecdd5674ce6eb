"""Error taxonomy for the ingest pipeline and the read path."""


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class ParseError(Exception):
    """Raised when a post cannot be turned into a record."""


class MissingField(ParseError):
    """A required key is absent or blank."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"missing or empty required field: {key}")


class MissingURL(ParseError):
    """The post carried no link."""

    def __init__(self) -> None:
        super().__init__("no valid URL found in message")


class NoValidTags(ParseError):
    """The tags value produced no usable tag."""

    def __init__(self) -> None:
        super().__init__("no valid tags found after parsing")


class StoreError(Exception):
    """Raised when the document store rejects an operation."""


class WriteFailed(StoreError):
    """Inserting a record failed."""


class IndexCreationFailed(StoreError):
    """Creating the secondary indexes failed at startup."""


class StoreTimeout(StoreError):
    """A store call exceeded its time budget."""

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} timed out after {timeout:g}s")


class QueryError(Exception):
    """Raised when a read cannot be served."""


class StoreUnavailable(QueryError):
    """The store could not be reached or failed during a read."""
