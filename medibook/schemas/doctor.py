from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field, model_validator

from .common import CamelModel

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class Qualification(CamelModel):
    degree: str = Field(min_length=1, max_length=100)
    institution: str = Field(min_length=1, max_length=200)
    year: int = Field(ge=1900, le=2100)


class AvailabilityEntry(CamelModel):
    day: Weekday
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    is_available: bool = True

    @model_validator(mode="after")
    def check_window(self):
        # zero-padded "HH:MM" strings compare chronologically
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class Hospital(CamelModel):
    name: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=100)


class DoctorProfileCreate(CamelModel):
    specialization: str = Field(min_length=1, max_length=100)
    qualifications: List[Qualification] = []
    experience: int = Field(ge=0)
    consultation_fee: float = Field(ge=0)
    availability: List[AvailabilityEntry] = []
    hospital: Optional[Hospital] = None
    about: Optional[str] = Field(None, max_length=500)


class DoctorProfileUpdate(CamelModel):
    specialization: Optional[str] = Field(None, min_length=1, max_length=100)
    qualifications: Optional[List[Qualification]] = None
    experience: Optional[int] = Field(None, ge=0)
    consultation_fee: Optional[float] = Field(None, ge=0)
    availability: Optional[List[AvailabilityEntry]] = None
    hospital: Optional[Hospital] = None
    about: Optional[str] = Field(None, max_length=500)


class DoctorUser(CamelModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None


class DoctorResponse(CamelModel):
    id: int
    user_id: int
    user: Optional[DoctorUser] = None
    specialization: str
    qualifications: List[Qualification] = []
    experience: int
    consultation_fee: float
    availability: List[AvailabilityEntry] = []
    hospital: Optional[Hospital] = None
    about: Optional[str] = None
    rating: float = 0
    total_reviews: int = 0
    is_verified: bool = False
    created_at: Optional[datetime] = None
