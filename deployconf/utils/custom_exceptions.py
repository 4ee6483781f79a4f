from .logger import logger


class BaseCustomException(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(BaseCustomException):
    def __init__(self, field: str, reason: str):
        super().__init__(f'Invalid configuration field "{field}": {reason}')
        self.field = field
        self.reason = reason


class CompileError(BaseCustomException):
    def __init__(self, reason: str):
        super().__init__(f"Failed to check compiler: {reason}")


class NodeError(BaseCustomException):
    def __init__(self, reason: str):
        super().__init__(f"Failed to communicate with network node: {reason}")


class ContractSizeError(BaseCustomException):
    def __init__(self, reason: str):
        super().__init__(f"Contract size check failed: {reason}")


class ExceptionHandler:
    raise_exception = True

    @staticmethod
    def initialize(raise_exception: bool) -> None:
        ExceptionHandler.raise_exception = raise_exception

    @staticmethod
    def raise_exception_or_log(custom_exception: BaseCustomException) -> None:
        if ExceptionHandler.raise_exception:
            raise custom_exception
        logger.error(str(custom_exception))
