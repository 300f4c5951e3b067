from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import date
from typing import Optional


class CycleCreate(BaseModel):
    academic_year: str = Field(..., min_length=4, max_length=20)
    semester: str = Field(..., min_length=1, max_length=20)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CycleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    academic_year: str
    semester: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool
