from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

ServiceType = Literal["grooming", "veterinary"]


class ServiceSummary(BaseModel):
    id: str
    name: str
    service_type: ServiceType
    base_price: Optional[float] = None
    default_duration: Optional[int] = None
    description: Optional[str] = None
    requires_bath: bool = False
    requires_grooming: bool = False
    requires_vet: bool = False
    active: bool = True

    @property
    def requires_staff(self) -> bool:
        return self.requires_bath or self.requires_grooming or self.requires_vet


class StaffSummary(BaseModel):
    id: str
    name: str
    can_bathe: bool = False
    can_groom: bool = False
    can_vet: bool = False
    active: bool = True
    bio: Optional[str] = None


class PetSummary(BaseModel):
    id: str
    name: str
    user_id: str
    breed: Optional[str] = None
    size: Optional[str] = None


class ServiceListResponse(BaseModel):
    total: int
    items: List[ServiceSummary] = Field(default_factory=list)


class StaffListResponse(BaseModel):
    total: int
    items: List[StaffSummary] = Field(default_factory=list)


class PetListResponse(BaseModel):
    total: int
    items: List[PetSummary] = Field(default_factory=list)
