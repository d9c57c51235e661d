from __future__ import annotations
from datetime import date as date_type
from enum import Enum
import uuid
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, conint, model_validator
from pydantic.alias_generators import to_camel

from eduschedule.engine.temporal import SessionPart, session_from_period


class CamelModel(BaseModel):
    # camelCase on the wire and in the stored blob, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionStatus(str, Enum):
    PENDING = "Pending"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    MAKEUP = "Makeup"
    OFF = "Off"


SessionKind = Literal["class", "exam"]


def generate_id() -> str:
    return uuid.uuid4().hex[:12]


# --- Reference data ---

class Major(CamelModel):
    id: str = ""
    name: str


class Teacher(CamelModel):
    id: str = ""
    name: str
    phone: str = ""
    account_number: str = ""
    bank: str = ""
    main_subject: str = ""
    rate_per_period: float = 0


class Subject(CamelModel):
    id: str = ""
    name: str
    major_id: str
    total_periods: conint(gt=0)
    is_shared: bool = False
    teacher1: Optional[str] = None
    phone1: Optional[str] = None
    teacher2: Optional[str] = None
    phone2: Optional[str] = None
    teacher3: Optional[str] = None
    phone3: Optional[str] = None


class ClassEntity(CamelModel):
    id: str = ""
    name: str
    major_id: str
    student_count: int = 0
    school_year: str = ""


class Student(CamelModel):
    id: str = ""
    class_id: str
    name: str
    student_code: str = ""
    dob: str = ""
    pob: str = ""
    father_name: str = ""
    mother_name: str = ""
    phone: str = ""


# --- Sessions ---

class SessionDraft(CamelModel):
    """A session as submitted by a scheduling form, before it gets an id."""

    kind: SessionKind = Field("class", alias="type")
    teacher_id: str = ""
    subject_id: str = ""
    class_id: str = ""
    room_id: str = ""
    date: date_type
    session: Optional[SessionPart] = None
    start_period: conint(ge=1, le=10)
    period_count: conint(ge=1)
    note: Optional[str] = None


class Session(SessionDraft):
    id: str
    status: SessionStatus = SessionStatus.PENDING

    @model_validator(mode="after")
    def _fill_session_part(self) -> "Session":
        # Older blobs may lack the stored part of day.
        if self.session is None:
            self.session = session_from_period(self.start_period)
        return self


class SessionUpdate(CamelModel):
    kind: Optional[SessionKind] = Field(None, alias="type")
    teacher_id: Optional[str] = None
    subject_id: Optional[str] = None
    class_id: Optional[str] = None
    room_id: Optional[str] = None
    date: Optional[date_type] = None
    session: Optional[SessionPart] = None
    start_period: Optional[conint(ge=1, le=10)] = None
    period_count: Optional[conint(ge=1)] = None
    status: Optional[SessionStatus] = None
    note: Optional[str] = None


class CopySessionRequest(CamelModel):
    date: date_type
    start_period: conint(ge=1, le=10)


class ContinueWeekRequest(CamelModel):
    week_start: date_type
    class_id: str


# --- Engine results ---

class ConflictResult(CamelModel):
    has_conflict: bool
    message: str = ""


class Progress(CamelModel):
    learned: int
    total: int
    percentage: int
    remaining: int

    @computed_field
    @property
    def is_complete(self) -> bool:
        return self.learned >= self.total and self.learned > 0


class SequenceInfo(CamelModel):
    cumulative: int
    is_first: bool
    is_last: bool
    display_cumulative: int


class ContinuationResult(CamelModel):
    added_count: int = 0
    warnings: List[str] = Field(default_factory=list)
    added: List[Session] = Field(default_factory=list)


# --- Views and reports ---

class SessionView(Session):
    effective_status: SessionStatus
    subject_name: str
    teacher_name: str
    class_name: str
    total_periods: Optional[int] = None
    sequence: Optional[SequenceInfo] = None


class SubjectProgressRow(CamelModel):
    subject_id: str
    subject_name: str
    total_periods: int
    learned_periods: int
    percentage: int
    status: Literal["in-progress", "upcoming", "completed"]
    is_auto_completed: bool
    is_manually_completed: bool


class PairProgress(CamelModel):
    subject_id: str
    class_id: str
    subject_name: str
    class_name: str
    total: int
    learned: int
    remaining: int


class CompletedPair(CamelModel):
    unique_key: str
    subject_id: str
    class_id: str
    subject_name: str
    class_name: str
    teacher_names: str
    total_periods: int


class TeacherWorkload(CamelModel):
    teacher_id: str
    teacher_name: str
    total_periods: int
    total_income: float


class Dashboard(CamelModel):
    today: date_type
    counts: Dict[str, int]
    today_sessions: List[SessionView]
    upcoming_exams: List[SessionView]


# --- Persisted blob ---

class AppState(CamelModel):
    teachers: List[Teacher] = Field(default_factory=list)
    subjects: List[Subject] = Field(default_factory=list)
    classes: List[ClassEntity] = Field(default_factory=list)
    students: List[Student] = Field(default_factory=list)
    schedules: List[Session] = Field(default_factory=list)
    majors: List[Major] = Field(default_factory=list)
    manual_completed: List[str] = Field(default_factory=list)
    paid: List[str] = Field(default_factory=list)
