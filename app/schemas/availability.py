from pydantic import BaseModel


class TimeSlotResponse(BaseModel):
    time: str
    available: bool
    professional_id: int | None = None


class BranchSummary(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration: int


class AvailabilityResponse(BaseModel):
    date: str
    branch: BranchSummary
    service: ServiceSummary
    available_slots: list[TimeSlotResponse]
