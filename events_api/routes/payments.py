from fastapi import APIRouter, Depends, HTTPException

from events_api.core.security import get_current_email
from events_api.schemas.payments import PaymentIntentOut, PaymentIntentRequest
from events_api.services.errors import InvalidAmountError, PaymentProcessorError
from events_api.services.payments import StripeGateway, create_payment_intent, get_payment_gateway

router = APIRouter(prefix="/api", tags=["payments"])


@router.post("/create-payment-intent", response_model=PaymentIntentOut)
def payment_intent(
    payload: PaymentIntentRequest,
    _: str = Depends(get_current_email),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    try:
        client_secret = create_payment_intent(gateway, payload.price)
    except InvalidAmountError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentProcessorError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return PaymentIntentOut(client_secret=client_secret)
