"""
Data-layer behaviour attached to the models

* reference numbers are generated on insert (PREFIX-YYYYMM-NNNN, monthly sequence)
* status changes stamp their timestamp columns and, once committed, trigger
  the status email
* committed inserts/updates/deletes are published to the change feed
"""

from datetime import datetime
from typing import Dict, Optional

from flask import current_app, has_app_context
from sqlalchemy import Integer, cast, event, func, inspect, select
from sqlalchemy.orm import Session, object_session

from letterportal.models.letter import LetterRequest, LetterType, StudyProgram
from letterportal.models.user import Student, StaffProfile
from letterportal.services.realtime import ChangeEvent, get_change_feed
from letterportal.utils.exceptions import ValidationError
from letterportal.utils.workflow import (
    RequestStatus, STATUS_TIMESTAMPS, parse_status, statuses_reached
)

TRACKED_MODELS = (Student, LetterType, StudyProgram, LetterRequest, StaffProfile)

DEFAULT_REFERENCE_PREFIX = 'SUK'


def _reference_prefix() -> str:
    if has_app_context():
        return current_app.config.get('REFERENCE_PREFIX') or DEFAULT_REFERENCE_PREFIX
    return DEFAULT_REFERENCE_PREFIX


def generate_reference_number(session: Session, now: datetime, taken: Dict[str, int],
                              prefix: Optional[str] = None) -> str:
    """
    Next free reference number for the month of `now`

    Args:
        session: Session used to read the latest issued number
        now: Submission time; picks the YYYYMM period
        taken: Sequences already handed out in the current flush
        prefix: Reference prefix, defaults to REFERENCE_PREFIX

    Returns:
        Reference number such as SUK-202501-0001
    """
    stem = f"{prefix or _reference_prefix()}-{now.strftime('%Y%m')}-"
    # Suffix compared as a number so 10000 sorts after 9999
    latest = session.execute(
        select(func.max(cast(func.substr(LetterRequest.reference_number, len(stem) + 1), Integer)))
        .where(LetterRequest.reference_number.like(f"{stem}%"))
    ).scalar()

    sequence = max(latest or 0, taken.get(stem, 0)) + 1
    taken[stem] = sequence
    return f"{stem}{sequence:04d}"


def stamp_status_timestamps(letter_request: LetterRequest, now: datetime) -> None:
    """Fill the timestamp of every state reached so far; set values are kept"""
    for status in statuses_reached(letter_request.status):
        column = STATUS_TIMESTAMPS[status]
        if getattr(letter_request, column) is None:
            setattr(letter_request, column, now)


@event.listens_for(Session, 'before_flush')
def _before_flush(session, flush_context, instances):
    now = datetime.utcnow()
    taken: Dict[str, int] = {}

    with session.no_autoflush:
        for obj in list(session.new):
            if not isinstance(obj, LetterRequest):
                continue
            if not obj.status:
                obj.status = RequestStatus.SUBMITTED.value
            obj.status = parse_status(obj.status).value
            if not obj.reference_number:
                obj.reference_number = generate_reference_number(session, now, taken)
            stamp_status_timestamps(obj, now)

        for obj in list(session.dirty):
            if not isinstance(obj, LetterRequest) or not session.is_modified(obj):
                continue

            state = inspect(obj)
            reference_history = state.attrs.reference_number.history
            if reference_history.deleted and reference_history.added:
                raise ValidationError("Reference number cannot be changed")

            status_history = state.attrs.status.history
            if not status_history.has_changes():
                continue
            old_status = status_history.deleted[0] if status_history.deleted else None
            obj.status = parse_status(obj.status).value
            if old_status == obj.status:
                continue

            stamp_status_timestamps(obj, now)
            session.info.setdefault('status_changes', []).append(
                (obj.id, old_status, obj.status)
            )


def _record_change(event_name):
    def listener(mapper, connection, target):
        session = object_session(target)
        if session is None:
            return
        session.info.setdefault('pending_changes', []).append(
            ChangeEvent(table=target.__tablename__, event=event_name, record_id=target.id)
        )
    return listener


for _model in TRACKED_MODELS:
    event.listen(_model, 'after_insert', _record_change('INSERT'))
    event.listen(_model, 'after_update', _record_change('UPDATE'))
    event.listen(_model, 'after_delete', _record_change('DELETE'))


@event.listens_for(Session, 'after_commit')
def _after_commit(session):
    changes = session.info.pop('pending_changes', [])
    status_changes = session.info.pop('status_changes', [])

    feed = get_change_feed()
    if feed is not None:
        for change in changes:
            feed.publish(change)

    if status_changes and has_app_context() and current_app.config.get('STATUS_EMAIL_ENABLED'):
        # Imported here: the notification service queries these models
        from letterportal.services.notification_service import trigger_status_email

        app = current_app._get_current_object()
        for request_id, old_status, new_status in status_changes:
            trigger_status_email(app, request_id, old_status, new_status)


@event.listens_for(Session, 'after_rollback')
def _after_rollback(session):
    session.info.pop('pending_changes', None)
    session.info.pop('status_changes', None)
