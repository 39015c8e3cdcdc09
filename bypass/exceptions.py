"""Custom exception hierarchy for bypass.

Every error raised deliberately by bypass derives from ``BypassError`` so
the CLI can report it with a single except clause, while the creation
pipeline can tell record-level failures apart from programming errors.

Exception Hierarchy:
    BypassError (base)
    ├── ConfigurationError
    ├── TransportError
    ├── ApiError
    ├── NameNotFoundError
    ├── InvalidInputError
    │   └── UnsupportedFormatError
    └── TemplateError

Example Usage:
    >>> from bypass.exceptions import ApiError
    >>> try:
    ...     await client.create_epic(request)
    ... except ApiError as e:
    ...     print(e.status, e.message)
"""


class BypassError(Exception):
    """Base exception for all bypass errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(BypassError):
    """Configuration-related errors.

    Examples:
        - No API token found in any source
        - Configuration file is not valid YAML
        - Invalid configuration values
    """

    pass


class TransportError(BypassError):
    """A request failed before a usable HTTP response was available.

    Raised for network failures, request bodies that cannot be serialized,
    and success responses whose body does not decode to the expected shape.
    """

    pass


class ApiError(BypassError):
    """The Shortcut API rejected a request with a non-2xx status.

    Attributes:
        status: HTTP status code of the final response
        message: Message extracted from the response body
    """

    def __init__(self, status: int, message: str) -> None:
        """Initialize exception.

        Args:
            status: HTTP status code
            message: Error message from the API
        """
        self.status = status
        super().__init__(f"Shortcut API error (HTTP {status}): {message}")
        # Keep the API's own text; the formatted form is in str(self)
        self.message = message


class NameNotFoundError(BypassError):
    """A human-readable reference did not resolve to an ID.

    Attributes:
        resource_type: Kind of thing being looked up ("user", "team", ...)
        name: The name that was queried
        hint: Optional preformatted sample of valid names
    """

    def __init__(self, resource_type: str, name: str, hint: str | None = None) -> None:
        """Initialize exception.

        Args:
            resource_type: Resource kind that was looked up
            name: The name that failed to resolve
            hint: Sample of names that would have resolved, appended to the message
        """
        self.resource_type = resource_type
        self.name = name
        self.hint = hint

        message = f"Name not found – no {resource_type} named '{name}' in this workspace"
        if hint is not None:
            message = f"{message}. Available: {hint or '(none)'}"
        super().__init__(message)


class InvalidInputError(BypassError):
    """An input file or record is malformed."""

    pass


class UnsupportedFormatError(InvalidInputError):
    """The input file extension is not a supported format.

    Attributes:
        extension: The offending extension (without the dot)
    """

    def __init__(self, extension: str) -> None:
        self.extension = extension
        super().__init__(f"Unsupported file format '.{extension}': use .yaml, .yml, .csv, or .xlsx")


class TemplateError(BypassError):
    """Description template errors.

    Examples:
        - Template file not found or unreadable
        - Invalid template syntax
        - Template rendering failed
    """

    pass
