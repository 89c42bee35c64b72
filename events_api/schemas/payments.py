from pydantic import Field

from events_api.schemas.common import CamelModel


class PaymentIntentRequest(CamelModel):
    price: float = Field(allow_inf_nan=False)


class PaymentIntentOut(CamelModel):
    client_secret: str
