from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Dict, List, Optional
from datetime import date
import datetime as dt


# Define data models
class ScheduleEntry(BaseModel):
    """One scheduled test: who, what and which day, plus optional job details."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    person: str = Field(min_length=1)
    test: str = Field(min_length=1)
    date: date
    time: Optional[str] = None
    location: Optional[str] = None
    zipCode: Optional[str] = None
    testId: Optional[str] = None
    mep: Optional[str] = None

    @field_validator("person", "test", mode="before")
    @classmethod
    def strip_required(cls, value):
        return str(value).strip() if value is not None else value

    @field_validator("time", "location", "zipCode", "testId", "mep", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        """
        Optional text fields never carry an empty string; blanks become None.
        """
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @property
    def iso_date(self) -> str:
        return self.date.isoformat()


class ScheduleMeta(BaseModel):
    updatedAt: Optional[dt.datetime] = None
    count: int = 0


class ScheduleSnapshot(BaseModel):
    entries: List[ScheduleEntry]
    meta: ScheduleMeta


class UploadResponse(BaseModel):
    count: int
    warnings: List[str] = Field(default_factory=list)
    updatedAt: Optional[dt.datetime] = None


class MonthCellModel(BaseModel):
    date: date
    day: int
    isCurrentMonth: bool
    isToday: bool


class ScheduleViewsResponse(BaseModel):
    people: List[str]
    testTypes: List[str]
    selectedPerson: str
    testFilter: str
    weekDates: List[str]
    teamWeek: Dict[str, List[ScheduleEntry]]
    personWeek: Dict[str, List[ScheduleEntry]]
    month: str
    monthGrid: List[MonthCellModel]
    personTasksByDate: Dict[str, List[ScheduleEntry]]
    personList: List[ScheduleEntry]
