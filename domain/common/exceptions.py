"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="ValidationError",
            details=details,
            field=field,
        )


class MissingDonationFieldsException(DomainValidationException):
    def __init__(self):
        super().__init__("Donation amount and email are required.")


class InvalidDonationAmountException(DomainValidationException):
    def __init__(self, amount: object = None):
        details = {"donation_amount": str(amount)} if amount is not None else None
        super().__init__("Invalid donation amount.", field="donationAmount", details=details)


class MissingCredentialsException(DomainValidationException):
    def __init__(self):
        super().__init__("Username and password are required.")


class UsernameAlreadyExistsException(BusinessException):
    def __init__(self, username: str):
        super().__init__(
            code=BusinessCode.USER_ALREADY_EXISTS,
            message=f"Username {username} already exists",
            error_type="UsernameAlreadyExists",
            details={"username": username},
            field="username",
        )


class InvalidCredentialsException(BusinessException):
    """用户名不存在与密码错误统一返回，避免用户名枚举"""

    def __init__(self):
        super().__init__(
            code=BusinessCode.PASSWORD_ERROR,
            message="Invalid credentials.",
            error_type="InvalidCredentials",
        )


class PersistenceException(BusinessException):
    """存储读写失败"""

    def __init__(self, operation: str, *, details: Optional[dict] = None):
        full_details = {"operation": operation}
        if details:
            full_details.update(details)
        super().__init__(
            code=BusinessCode.DATABASE_ERROR,
            message=f"Database operation failed: {operation}",
            error_type="PersistenceError",
            details=full_details,
        )
