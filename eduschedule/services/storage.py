from __future__ import annotations
import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import ValidationError

from eduschedule.errors import PersistenceError
from eduschedule.schemas import AppState


logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("teachers", "subjects", "classes", "schedules")

INITIAL_DATA: Dict[str, Any] = {
    "teachers": [
        {"id": "1", "name": "Nguyen Van Thai", "phone": "0901234567", "bank": "VCB", "accountNumber": "123456", "mainSubject": "1", "ratePerPeriod": 100000},
        {"id": "2", "name": "Tran Thi Ha", "phone": "0909876543", "bank": "ACB", "accountNumber": "654321", "mainSubject": "2", "ratePerPeriod": 120000},
        {"id": "3", "name": "Le Van Kha", "phone": "0912345678", "bank": "Tech", "accountNumber": "888888", "mainSubject": "3", "ratePerPeriod": 110000},
    ],
    "subjects": [
        {"id": "1", "name": "Electrical Measurement", "majorId": "2", "totalPeriods": 30},
        {"id": "2", "name": "C++ Programming", "majorId": "4", "totalPeriods": 45},
        {"id": "3", "name": "Accounting Principles", "majorId": "1", "totalPeriods": 60},
        {"id": "4", "name": "Electrical Apparatus", "majorId": "2", "totalPeriods": 45},
        {"id": "5", "name": "Electronic Circuits", "majorId": "3", "totalPeriods": 60},
    ],
    "classes": [
        {"id": "1", "name": "Industrial Electrics (25DC2H8)", "studentCount": 40, "majorId": "2", "schoolYear": "2023-2026"},
        {"id": "2", "name": "Accounting K15", "studentCount": 35, "majorId": "1", "schoolYear": "2023-2026"},
    ],
    "students": [
        {"id": "1", "studentCode": "SV001", "classId": "1", "name": "Nguyen Van A", "dob": "2005-01-15", "pob": "Ha Noi", "fatherName": "Nguyen Van B", "motherName": "Le Thi C", "phone": "0987654321"},
        {"id": "2", "studentCode": "SV002", "classId": "1", "name": "Tran Thi B", "dob": "2005-05-20", "pob": "Nam Dinh", "fatherName": "Tran Van D", "motherName": "Pham Thi E", "phone": "0912345678"},
    ],
    "majors": [
        {"id": "1", "name": "Business Accounting"},
        {"id": "2", "name": "Industrial Electrics"},
        {"id": "3", "name": "Electrical and Electronics"},
        {"id": "4", "name": "Information Technology"},
    ],
    "schedules": [],
}


def initial_state() -> AppState:
    return AppState.model_validate(INITIAL_DATA)


def parse_state(payload: Any) -> AppState:
    """Validate a whole-state blob (a restore file or the stored JSON).

    Raises ``ValueError`` when the blob is not a usable state; optional
    arrays missing from older blobs default to empty.
    """
    if not isinstance(payload, dict) or any(key not in payload for key in REQUIRED_KEYS):
        raise ValueError("Invalid data file: expected teachers, subjects, classes and schedules")
    try:
        return AppState.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid data file: {exc.error_count()} invalid entries") from exc


def dump_state(state: AppState) -> Dict[str, Any]:
    return state.model_dump(mode="json", by_alias=True)


class JsonFileStorage:
    """Keeps the whole application state as one JSON blob on disk.

    With ``path=None`` nothing is written and every load starts from the
    seed data.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path

    def load(self) -> AppState:
        if not self.path or not os.path.exists(self.path):
            return initial_state()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                state = parse_state(json.load(f))
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            logger.error("Failed to load data from %s, starting from seed data: %s", self.path, exc)
            return initial_state()
        logger.info("Loaded %d sessions from %s", len(state.schedules), self.path)
        return state

    def save(self, state: AppState) -> None:
        if not self.path:
            return
        tmp_path = f"{self.path}.tmp"
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(dump_state(state), f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            logger.error("Failed to save data to %s: %s", self.path, exc)
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Could not save data: {exc}") from exc
