from __future__ import annotations
from typing import Iterable, List, Mapping, Optional

from eduschedule.schemas import ClassEntity, Subject


DELETED_PLACEHOLDER = "(deleted)"


def subjects_for_class(class_entity: Optional[ClassEntity], subjects: Iterable[Subject]) -> List[Subject]:
    """Subjects that make up a class's curriculum.

    Membership is implicit: a subject belongs to every class of the same
    major. Without a class every subject is offered.
    """
    if class_entity is None:
        return list(subjects)
    return [s for s in subjects if s.major_id == class_entity.major_id]


def pair_key(subject_id: str, class_id: str) -> str:
    return f"{subject_id}-{class_id}"


def display_name(lookup: Mapping[str, object], entity_id: Optional[str], placeholder: str = DELETED_PLACEHOLDER) -> str:
    entity = lookup.get(entity_id) if entity_id else None
    if entity is None:
        return placeholder
    return getattr(entity, "name", placeholder)
