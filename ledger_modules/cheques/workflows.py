"""
Cheque Workflow.

State machine for a cheque after it has been recorded.  Only a pending
(postponed) cheque can move; cashed, rejected and endorsed are terminal.
"""

from dataclasses import dataclass

from ledger_kernel.domain.values import ChequeStatus
from ledger_kernel.exceptions import InvalidChequeTransitionError
from ledger_kernel.logging_config import get_logger

logger = get_logger("modules.cheques.workflows")


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: ChequeStatus
    to_state: ChequeStatus
    action: str
    settles_entry: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: ChequeStatus
    states: tuple[ChequeStatus, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[ChequeStatus, ...]


CHEQUE_WORKFLOW = Workflow(
    name="cheque",
    description="Post-dated cheque lifecycle",
    initial_state=ChequeStatus.PENDING,
    states=(
        ChequeStatus.PENDING,
        ChequeStatus.CASHED,
        ChequeStatus.REJECTED,
        ChequeStatus.ENDORSED,
    ),
    transitions=(
        Transition(ChequeStatus.PENDING, ChequeStatus.CASHED, action="confirm_collection",
                   settles_entry=True),
        Transition(ChequeStatus.PENDING, ChequeStatus.REJECTED, action="reject"),
        Transition(ChequeStatus.PENDING, ChequeStatus.ENDORSED, action="endorse"),
    ),
    terminal_states=(
        ChequeStatus.CASHED,
        ChequeStatus.REJECTED,
        ChequeStatus.ENDORSED,
    ),
)

logger.info(
    "cheque_workflow_defined",
    extra={
        "workflow": CHEQUE_WORKFLOW.name,
        "transitions": [
            f"{t.from_state.value}->{t.to_state.value}" for t in CHEQUE_WORKFLOW.transitions
        ],
    },
)


def can_transition(from_status: ChequeStatus, to_status: ChequeStatus) -> bool:
    return any(
        t.from_state is from_status and t.to_state is to_status
        for t in CHEQUE_WORKFLOW.transitions
    )


def validate_transition(
    from_status: ChequeStatus,
    to_status: ChequeStatus,
    cheque_id: object = "",
) -> Transition:
    """Return the matching transition or raise ``InvalidChequeTransitionError``."""
    for t in CHEQUE_WORKFLOW.transitions:
        if t.from_state is from_status and t.to_state is to_status:
            return t
    raise InvalidChequeTransitionError(str(cheque_id), from_status.value, to_status.value)
