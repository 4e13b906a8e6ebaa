from pydantic import BaseModel, Field, model_validator

from app.services.schedule_service import DaySchedule, parse_clock

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class BranchScheduleUpsertRequest(BaseModel):
    start_time: str = Field(pattern=CLOCK_PATTERN, examples=["09:00"])
    end_time: str = Field(pattern=CLOCK_PATTERN, examples=["18:00"])
    is_closed: bool = False

    @model_validator(mode="after")
    def check_hours(self) -> "BranchScheduleUpsertRequest":
        DaySchedule(opens_at=parse_clock(self.start_time), closes_at=parse_clock(self.end_time))
        return self


class ProfessionalScheduleUpsertRequest(BaseModel):
    start_time: str = Field(pattern=CLOCK_PATTERN, examples=["09:00"])
    end_time: str = Field(pattern=CLOCK_PATTERN, examples=["18:00"])
    is_closed: bool = False
    break_start_time: str | None = Field(default=None, pattern=CLOCK_PATTERN)
    break_end_time: str | None = Field(default=None, pattern=CLOCK_PATTERN)

    @model_validator(mode="after")
    def check_hours(self) -> "ProfessionalScheduleUpsertRequest":
        DaySchedule(
            opens_at=parse_clock(self.start_time),
            closes_at=parse_clock(self.end_time),
            break_starts_at=parse_clock(self.break_start_time) if self.break_start_time else None,
            break_ends_at=parse_clock(self.break_end_time) if self.break_end_time else None,
        )
        return self


class BranchScheduleResponse(BaseModel):
    id: int
    branch_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_closed: bool

    model_config = {"from_attributes": True}


class ProfessionalScheduleResponse(BaseModel):
    id: int
    professional_id: int
    day_of_week: int
    start_time: str
    end_time: str
    is_closed: bool
    break_start_time: str | None
    break_end_time: str | None

    model_config = {"from_attributes": True}
