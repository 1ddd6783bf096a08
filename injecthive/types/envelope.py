from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    MISSING_PARAMETER = "MissingParameter"
    INVALID_PARAMETER = "InvalidParameter"
    PROTOCOL_NOT_FOUND = "ProtocolNotFound"
    DATA_NOT_AVAILABLE = "DataNotAvailable"
    API_ERROR = "ApiError"
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    CONFIGURATION_ERROR = "ConfigurationError"
    TRANSACTION_FAILED = "TransactionFailed"


class ErrorInfo(BaseModel):
    code: str = Field(description="Short machine-readable error tag")
    message: str = Field(description="Human readable explanation")
    details: Optional[Any] = Field(default=None, description="Upstream payload or extra context")


class Success(BaseModel):
    success: Literal[True] = True
    result: Any = Field(default=None, description="Operation payload")


class Failure(BaseModel):
    success: Literal[False] = False
    error: ErrorInfo = Field(description="Why the operation failed")

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message


Envelope = Union[Success, Failure]


def success(result: Any = None) -> Success:
    return Success(result=result)


def failure(code: Union[ErrorCode, str], message: str, details: Any = None) -> Failure:
    code_value = code.value if isinstance(code, ErrorCode) else str(code)
    return Failure(error=ErrorInfo(code=code_value, message=message, details=details))


def reply_error(reply: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """The ``error`` member of a client reply as a dict; bare strings become the message."""
    error = (reply or {}).get("error")
    if isinstance(error, Mapping):
        return dict(error)
    if error:
        return {"message": str(error)}
    return {}


def from_client_reply(reply: Optional[Mapping[str, Any]], default_code: str) -> Envelope:
    """Interpret a chain client ``{success, result, error}`` reply as an envelope."""
    if not reply:
        return failure(default_code, "Empty response from chain client")

    if reply.get("success"):
        return success(reply.get("result"))

    error = reply_error(reply)
    return failure(
        error.get("code") or default_code,
        str(error.get("message") or "Unknown error"),
        error.get("details"),
    )
