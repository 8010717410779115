from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError


class StackWrapperError(Exception):
    """Base class for all errors raised by stackwrapper."""


class ConfigurationError(StackWrapperError):
    """Raised for invalid stack definitions, e.g., a malformed parameter string or an empty required field."""


class ProviderRequestError(StackWrapperError):
    """Raised when a request to the CloudFormation API was rejected or could not be sent."""

    def __init__(
        self,
        operation: str,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.operation = operation
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(f"{operation} failed: {message}")

    @classmethod
    def from_client_error(cls, operation: str, error: ClientError) -> "ProviderRequestError":
        details = error.response.get("Error", {})
        return cls(
            operation,
            details.get("Message") or str(error),
            error_code=details.get("Code"),
            status_code=error.response.get("ResponseMetadata", {}).get("HTTPStatusCode"),
        )

    @classmethod
    def from_botocore_error(cls, operation: str, error: BotoCoreError) -> "ProviderRequestError":
        return cls(operation, str(error))

    @property
    def is_service_error(self) -> bool:
        """Whether the request reached the service and was rejected, as opposed to a client-side fault."""
        return self.error_code is not None

    def detailed_message(self) -> str:
        if not self.is_service_error:
            return f"Error was: {self.message}"
        return (
            f"Detailed Message: {self.message}\n"
            f"Status Code: {self.status_code}\n"
            f"Error Code: {self.error_code}\n"
        )


class StackTimeoutError(StackWrapperError):
    """Raised when a stack is still being created after the configured timeout."""

    def __init__(self, stack_name: str, timeout: float):
        self.stack_name = stack_name
        self.timeout = timeout
        super().__init__(
            f"Timed out waiting for stack {stack_name} to be created. (timeout={timeout})"
        )


class StackOutputsUnavailableError(StackWrapperError):
    """Raised when the outputs of a stack are requested before the stack was created successfully."""

    def __init__(self, stack_name: str):
        self.stack_name = stack_name
        super().__init__(f"Stack {stack_name} has not been created successfully, no outputs available")
