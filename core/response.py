"""
统一响应格式定义

成功响应按接口约定返回扁平 JSON（如 {"message": ...}），
错误响应统一为 {"error": ..., "code": ..., "type": ...}。
"""
from typing import Optional
from pydantic import BaseModel, Field, field_serializer
from datetime import datetime, timezone


class ErrorResponse(BaseModel):
    """错误响应"""
    error: str
    code: int
    type: str
    field: Optional[str] = None
    details: Optional[dict] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer('timestamp')
    def serialize_timestamp(self, timestamp: datetime) -> str:
        """序列化时间戳为 UTC ISO8601，统一使用 Z 结尾"""
        ts = timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        else:
            ts = ts.astimezone(timezone.utc)
        return ts.isoformat().replace("+00:00", "Z")


class MessageResponse(BaseModel):
    """仅含提示信息的成功响应"""
    message: str


def message_response(message: str) -> MessageResponse:
    return MessageResponse(message=message)


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None
) -> ErrorResponse:
    """
    创建错误响应

    Args:
        code: 业务状态码
        message: 错误消息
        error_type: 错误类型
        details: 错误详情
        field: 错误字段
        request_id: 请求ID

    Returns:
        ErrorResponse: 错误响应对象
    """
    return ErrorResponse(
        error=message,
        code=int(code),
        type=error_type,
        details=details,
        field=field,
        request_id=request_id,
    )
