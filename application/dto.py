"""
数据传输对象（DTO）- 用于API层和应用层之间的数据传输
"""
from datetime import datetime
from typing import Optional, List, Union
from pydantic import BaseModel, ConfigDict, Field

from domain.donation.entity import Donation


class DonationCreateDTO(BaseModel):
    """捐赠表单提交（字段名沿用前端的 camelCase）

    必填校验在应用服务中完成，以便统一返回 400 与固定提示语。
    """
    model_config = ConfigDict(populate_by_name=True)

    donation_amount: Optional[Union[int, float, str]] = Field(default=None, alias="donationAmount")
    email: Optional[str] = None
    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    card_name: Optional[str] = Field(default=None, alias="cardName")
    country: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")


class ClientSecretDTO(BaseModel):
    """创建支付意图后返回给前端的确认凭证"""
    model_config = ConfigDict(populate_by_name=True)

    client_secret: str = Field(alias="clientSecret")


class WebhookAckDTO(BaseModel):
    received: bool = True


class DonationResponseDTO(BaseModel):
    """捐赠记录（字段名与数据表列名一致）"""
    id: int
    donation_amount: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    card_name: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    payment_intent_id: str
    payment_intent_status: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, donation: Donation) -> "DonationResponseDTO":
        return cls(
            id=donation.id,
            donation_amount=donation.amount_cents,
            email=donation.email,
            first_name=donation.first_name,
            last_name=donation.last_name,
            card_name=donation.card_name,
            country=donation.country,
            postal_code=donation.postal_code,
            payment_intent_id=donation.payment_intent_id,
            payment_intent_status=donation.status,
            created_at=donation.created_at,
        )


class DonationListDTO(BaseModel):
    donations: List[DonationResponseDTO]


class CredentialsDTO(BaseModel):
    """管理员用户名/密码（注册、登录、添加管理员共用）"""
    username: Optional[str] = None
    password: Optional[str] = None


class SetupStatusDTO(BaseModel):
    """是否已存在管理员账户"""
    setup: bool
