from typing import Generic, TypeVar, Optional, Union
from http import HTTPStatus

T = TypeVar('T')  # Generic type variable

MISSING_INPUT_MESSAGE = "Both files are required."
PROCESSING_FAILURE_MESSAGE = "Error processing files."


class Result(Generic[T]):
    """
    A generic result class that represents the outcome of an operation.

    Either carries the produced data (success) or a caller-facing error
    message together with the HTTP status it should be reported with.

    Attributes:
        success (bool): Indicates if the operation was successful
        data (Optional[T]): The result data (only present when success is True)
        error (Optional[str]): Error message (only present when success is False)
        status_code (HTTPStatus): HTTP status code (default: 200 for success, 400 for failure)
    """
    def __init__(
        self,
        success: bool,
        data: Optional[T] = None,
        error: Optional[str] = None,
        status_code: Optional[Union[int, HTTPStatus]] = None
    ):
        self.success = success
        self.data = data
        self.error = error

        if status_code is None:
            self.status_code = HTTPStatus.OK if success else HTTPStatus.BAD_REQUEST
        else:
            self.status_code = HTTPStatus(status_code)

    @classmethod
    def ok(cls, data: T, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.OK) -> "Result[T]":
        """
        Create a successful Result with the provided data.

        Args:
            data (T): The data to be wrapped in the Result
            status_code (Optional[Union[int, HTTPStatus]], optional): HTTP status code. Defaults to 200 OK.

        Returns:
            Result[T]: A successful Result containing the provided data
        """
        return cls(success=True, data=data, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: Optional[Union[int, HTTPStatus]] = HTTPStatus.BAD_REQUEST) -> "Result[T]":
        """
        Create a failed Result with the provided error message.

        Args:
            error (str): The error message describing the failure
            status_code (Optional[Union[int, HTTPStatus]], optional): HTTP status code. Defaults to 400 BAD_REQUEST.

        Returns:
            Result[T]: A failed Result containing the error message
        """
        return cls(success=False, error=error, status_code=status_code)

    @classmethod
    def missing_input(cls, error: str = MISSING_INPUT_MESSAGE) -> "Result[T]":
        """
        Create a failed Result for an upload that lacks one of its files (400).
        """
        return cls.fail(error, status_code=HTTPStatus.BAD_REQUEST)

    @classmethod
    def processing_failure(cls, error: str = PROCESSING_FAILURE_MESSAGE) -> "Result[T]":
        """
        Create a failed Result for a workbook that could not be decoded,
        filled or encoded (500).
        """
        return cls.fail(error, status_code=HTTPStatus.INTERNAL_SERVER_ERROR)

    def is_success(self) -> bool:
        return self.success

    def is_failure(self) -> bool:
        return not self.success

    def unwrap_or_raise(self) -> T:
        """
        Get the data value or raise an exception if the Result is a failure.

        Raises:
            ValueError: If the Result is a failure, with the error message

        Returns:
            T: The data value
        """
        if not self.is_success():
            raise ValueError(self.error or "Operation failed")
        return self.data  # type: ignore

    def __str__(self) -> str:
        status_info = f"{self.status_code.value} {self.status_code.phrase}"
        if self.is_success():
            data_repr = str(self.data)
            # Truncate long data representations
            if len(data_repr) > 100:
                data_repr = f"{data_repr[:97]}..."
            return f"Success ({status_info}): {data_repr}"
        return f"Failure ({status_info}): {self.error}"

    def __repr__(self) -> str:
        return f"Result(success={self.success}, status_code={self.status_code!r}, error={self.error!r})"
