from typing import Literal, Optional

from pydantic import BaseModel, Field

PriceSource = Literal["exact_match", "service_size_fallback", "service_default", "system_default"]


class PricingRequest(BaseModel):
    service_id: str
    breed: Optional[str] = Field(None, description="Breed name as stored on the pet")
    size: Optional[str] = None


class PricingResult(BaseModel):
    price: float
    duration: int
    price_source: PriceSource
