# backend/grassroutes/services/pathway.py
import logging
from typing import Collection, List, Optional, Sequence

from grassroutes.schemas.content import Lesson
from grassroutes.schemas.pathway import PathwayLesson, PathwaySection, PathwayView, PaymentNotice
from grassroutes.services import content_loader
from grassroutes.services.progress_tracker import ProgressTracker

logger = logging.getLogger(__name__)

PAYMENT_NOTICES = {
    "success": "Thank you for your donation! Your support keeps mygrassroutes free.",
    "cancelled": "Your donation was cancelled. No payment was made.",
}


def is_lesson_accessible(lesson: Lesson, section_lessons: Sequence[Lesson], completed_ids: Collection[str]) -> bool:
    """
    Sequential gating inside a section.

    Letter A is always open; any other letter needs the previous letter of
    the same section to be complete. A missing previous lesson leaves the
    lesson open.
    """
    if lesson.lesson_letter == "A":
        return True
    previous_letter = chr(ord(lesson.lesson_letter) - 1)
    previous = next(
        (
            l for l in section_lessons
            if l.section_id == lesson.section_id and l.lesson_letter == previous_letter
        ),
        None,
    )
    if previous is None:
        return True
    completed = {str(c) for c in completed_ids}
    return str(previous.id) in completed


def can_open_lesson(lesson: Lesson, tracker: Optional[ProgressTracker] = None) -> bool:
    """Whether the pathway shows ``lesson`` as open to the current visitor."""
    if tracker is None or not tracker.user_id:
        return lesson.section_number == 1
    section_lessons = content_loader.get_lessons(lesson.section_id)
    return is_lesson_accessible(lesson, section_lessons, tracker.completed_lesson_ids())


def payment_notice(payment: Optional[str]) -> Optional[PaymentNotice]:
    if payment not in PAYMENT_NOTICES:
        return None
    return PaymentNotice(status=payment, message=PAYMENT_NOTICES[payment])


def build_pathway(unit_id: int, tracker: Optional[ProgressTracker] = None, payment: Optional[str] = None) -> PathwayView:
    """
    Pathway of a unit for the current visitor.

    Without a signed-in user the first section is open and the remaining
    sections come back as disabled previews. With a user each lesson is
    gated on the previous one and carries its completion flag.
    """
    unit = content_loader.get_unit(unit_id)

    logged_in = tracker is not None and bool(tracker.user_id)
    completed_ids: List[str] = tracker.completed_lesson_ids() if logged_in else []

    sections = []
    for section in content_loader.get_sections(unit_id):
        lessons = content_loader.get_lessons(section.id)
        rendered = []
        for lesson in lessons:
            if logged_in:
                rendered.append(PathwayLesson(
                    **lesson.model_dump(),
                    accessible=is_lesson_accessible(lesson, lessons, completed_ids),
                    completed=str(lesson.id) in completed_ids,
                ))
            else:
                first_section = section.section_number == 1
                rendered.append(PathwayLesson(
                    **lesson.model_dump(),
                    accessible=first_section,
                    preview=not first_section,
                ))
        sections.append(PathwaySection(
            id=section.id,
            section_number=section.section_number,
            title=section.title,
            description=section.description,
            lessons=rendered,
        ))

    return PathwayView(
        unit=unit,
        logged_in=logged_in,
        sections=sections,
        stats=tracker.get_progress_stats() if logged_in else None,
        notice=payment_notice(payment),
    )
