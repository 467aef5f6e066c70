"""Request payloads accepted by the pledge engine and the API routers."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class AuthState:
    """Who is calling, as established by the upstream session layer."""

    user_id: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = AuthState()


class PledgeOptionInput(BaseModel):
    template_id: int
    amount: int


class PledgeUserInput(BaseModel):
    email: str = Field(pattern=r"^.+@.+\..+$")
    name: str


class PledgeInput(BaseModel):
    options: List[PledgeOptionInput]
    total: int
    reason: Optional[str] = None
    user: Optional[PledgeUserInput] = None


class PaymentInput(BaseModel):
    pledge_id: str
    method: str
    # Stripe: токен источника карты
    source_id: Optional[str] = None
    # PostFinance / PayPal: параметры возврата с сайта провайдера
    psp_payload: Optional[Dict[str, Any]] = None


class PledgeClaimInput(BaseModel):
    pledge_id: str
    email: str = Field(pattern=r"^.+@.+\..+$")


class AddressInput(BaseModel):
    name: str
    line1: str
    line2: Optional[str] = None
    postal_code: str
    city: str
    country: str


class QuestionInput(BaseModel):
    question: str = Field(min_length=1)
