"""Per-file upload lifecycle finite state machine.

Each UploadTask owns one FSM instance.  The FSM only validates that
phases happen strictly in order; it has no callbacks and does no I/O.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class UploadTaskSM(StateMachine):
    """Six-state lifecycle for one file's three-phase upload.

    States:
        pending          -- Queued, nothing sent yet.
        requesting_slot  -- Asking the storage API for a write location.
        transferring     -- Writing bytes to the object store.
        confirming       -- Telling the storage API the write finished.
        succeeded        -- Confirmed (final).
        failed           -- One phase failed (final).
    """

    pending = State("pending", initial=True, value="pending")
    requesting_slot = State("requesting_slot", value="requesting_slot")
    transferring = State("transferring", value="transferring")
    confirming = State("confirming", value="confirming")
    succeeded = State("succeeded", final=True, value="succeeded")
    failed = State("failed", final=True, value="failed")

    request_slot = pending.to(requesting_slot)
    start_transfer = requesting_slot.to(transferring)
    start_confirm = transferring.to(confirming)
    complete = confirming.to(succeeded)
    fail = (
        requesting_slot.to(failed)
        | transferring.to(failed)
        | confirming.to(failed)
    )


def create_fsm() -> UploadTaskSM:
    """Create an FSM positioned at ``pending``."""
    return UploadTaskSM()
