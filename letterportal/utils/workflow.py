"""
Letter request status workflow

Requests move through a fixed linear order:
Submitted -> Approved -> Processing -> Completed
"""

from enum import Enum
from typing import Dict, List, Optional, Union


class RequestStatus(str, Enum):
    SUBMITTED = 'Submitted'
    APPROVED = 'Approved'
    PROCESSING = 'Processing'
    COMPLETED = 'Completed'

    def __str__(self) -> str:
        return self.value


WORKFLOW_ORDER: List[RequestStatus] = [
    RequestStatus.SUBMITTED,
    RequestStatus.APPROVED,
    RequestStatus.PROCESSING,
    RequestStatus.COMPLETED,
]

STATUS_VALUES = [status.value for status in WORKFLOW_ORDER]

# Timestamp column stamped when a request reaches each status
STATUS_TIMESTAMPS: Dict[RequestStatus, str] = {
    RequestStatus.SUBMITTED: 'submitted_at',
    RequestStatus.APPROVED: 'approved_at',
    RequestStatus.PROCESSING: 'processing_started_at',
    RequestStatus.COMPLETED: 'completed_at',
}

STATUS_CONFIG: Dict[RequestStatus, Dict[str, str]] = {
    RequestStatus.SUBMITTED: {'label': 'Submitted', 'color': 'warning', 'icon': 'Clock'},
    RequestStatus.APPROVED: {'label': 'Approved', 'color': 'info', 'icon': 'CheckCircle'},
    RequestStatus.PROCESSING: {'label': 'Processing', 'color': 'primary', 'icon': 'Loader'},
    RequestStatus.COMPLETED: {'label': 'Completed', 'color': 'success', 'icon': 'CheckCheck'},
}


def parse_status(value: Union[str, RequestStatus, None]) -> RequestStatus:
    """
    Coerce a raw value into a RequestStatus

    Raises:
        ValueError: If the value is not a workflow state
    """
    if isinstance(value, RequestStatus):
        return value
    if isinstance(value, str):
        for status in WORKFLOW_ORDER:
            if status.value.lower() == value.strip().lower():
                return status
    raise ValueError(f"Unknown status: {value!r}")


def status_index(status: Union[str, RequestStatus]) -> int:
    return WORKFLOW_ORDER.index(parse_status(status))


def next_status(status: Union[str, RequestStatus]) -> Optional[RequestStatus]:
    """The state after `status`, or None at the terminal state"""
    index = status_index(status)
    if index < len(WORKFLOW_ORDER) - 1:
        return WORKFLOW_ORDER[index + 1]
    return None


def progress_fraction(status: Union[str, RequestStatus]) -> float:
    """Progress bar fill, index / (len - 1)"""
    return status_index(status) / (len(WORKFLOW_ORDER) - 1)


def can_transition(old: Union[str, RequestStatus], new: Union[str, RequestStatus]) -> bool:
    """Same state or any later state; never backwards"""
    return status_index(new) >= status_index(old)


def statuses_reached(status: Union[str, RequestStatus]) -> List[RequestStatus]:
    """Every state up to and including `status`"""
    return WORKFLOW_ORDER[:status_index(status) + 1]


def describe_status(status: Union[str, RequestStatus]) -> Dict[str, object]:
    """Status summary used by tracking and detail views"""
    current = parse_status(status)
    upcoming = next_status(current)
    return {
        'status': current.value,
        'label': STATUS_CONFIG[current]['label'],
        'color': STATUS_CONFIG[current]['color'],
        'icon': STATUS_CONFIG[current]['icon'],
        'index': status_index(current),
        'progress': progress_fraction(current),
        'next_status': upcoming.value if upcoming else None,
        'steps': [
            {
                'status': step.value,
                'label': STATUS_CONFIG[step]['label'],
                'complete': status_index(step) <= status_index(current),
                'current': step == current,
            }
            for step in WORKFLOW_ORDER
        ],
    }
