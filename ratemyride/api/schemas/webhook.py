"""
Pydantic v2 schema for the Stripe webhook acknowledgement.
"""

from pydantic import BaseModel


class WebhookReceivedOut(BaseModel):
    received: bool = True
