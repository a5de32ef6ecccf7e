# cmms_iut/modules/transfers/workflow.py
"""
Máquina de estados de la transferencia entre unidades.

Sin acceso a BD: decide únicamente si una acción es legal desde un estado
y cuál es el estado resultante.
"""
from enum import Enum
from typing import Dict, List, Tuple

from cmms_iut.core.errors import InvalidStateTransitionError


class TransferStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransferAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    CANCEL = "cancel"
    COMPLETE = "complete"


TRANSITIONS: Dict[Tuple[TransferStatus, TransferAction], TransferStatus] = {
    (TransferStatus.PENDING, TransferAction.APPROVE): TransferStatus.APPROVED,
    (TransferStatus.PENDING, TransferAction.REJECT): TransferStatus.REJECTED,
    (TransferStatus.PENDING, TransferAction.CANCEL): TransferStatus.CANCELLED,
    (TransferStatus.APPROVED, TransferAction.CANCEL): TransferStatus.CANCELLED,
    (TransferStatus.APPROVED, TransferAction.COMPLETE): TransferStatus.COMPLETED,
}

TERMINAL_STATUSES = frozenset({
    TransferStatus.REJECTED,
    TransferStatus.COMPLETED,
    TransferStatus.CANCELLED,
})

OPEN_STATUSES = frozenset({TransferStatus.PENDING, TransferStatus.APPROVED})

STATUS_LABELS = {
    TransferStatus.PENDING: "Pending Approval",
    TransferStatus.APPROVED: "Approved",
    TransferStatus.COMPLETED: "Completed",
    TransferStatus.REJECTED: "Rejected",
    TransferStatus.CANCELLED: "Cancelled",
}


def next_status(current: str, action: str, transfer_id: int = None) -> TransferStatus:
    """Estado destino de aplicar `action` sobre `current`; error si no es legal"""
    try:
        key = (TransferStatus(current), TransferAction(action))
    except ValueError:
        raise InvalidStateTransitionError(str(current), str(action), transfer_id)

    if key not in TRANSITIONS:
        raise InvalidStateTransitionError(key[0].value, key[1].value, transfer_id)
    return TRANSITIONS[key]


def allowed_actions(current: str) -> List[str]:
    """Acciones disponibles desde un estado (vacío si es terminal)"""
    return [
        action.value
        for (status, action) in TRANSITIONS
        if status.value == current
    ]


def is_terminal(current: str) -> bool:
    return current in {s.value for s in TERMINAL_STATUSES}


def status_label(current: str) -> str:
    try:
        return STATUS_LABELS[TransferStatus(current)]
    except ValueError:
        return current
