from .error import Error, ErrorType
from .result import Result, Success, Failure, try_, try_async

__all__ = ("Error", "ErrorType", "Result", "Success", "Failure", "try_", "try_async")
