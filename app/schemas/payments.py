from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    bookingId: str = Field(min_length=1)


class PaymentIntentOut(BaseModel):
    # Only the client secret leaves the server; the intent object itself never does.
    clientSecret: str


class WebhookAck(BaseModel):
    received: bool = True
