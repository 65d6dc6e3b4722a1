"""
Assignment state machine for an artwork's membership in a show.

    none ──assign──▶ accepted ──mark shown──▶ shown
     │                │   ▲                     │
     │             reject │ reassign            │ re-accept (new cycle)
     ▼                ▼   │                     │
    rejected ◀────────┘   └─────────────────────┘

Every status may move to any target drawn above, so only structural rules
are checked: `Accepted` refuses an empty show id, and `plan_transition`
refuses to mark a piece shown in a show other than the one it hangs in.
The planner also works out which back references have to be detached and
attached. It never touches the store: the engine applies the plan to its
working copies.
"""

from dataclasses import dataclass

from artspace.core.exceptions import ValidationError
from artspace.schemas.entities import Artwork
from artspace.services.relationships import (
    Accepted,
    AssignmentState,
    Rejected,
    Shown,
    state_of,
)


@dataclass(frozen=True)
class TransitionPlan:
    source: AssignmentState
    target: AssignmentState
    detach_show_id: str = ""
    detach_location_id: str = ""
    attach: bool = False
    record_history: bool = False

    @property
    def is_noop(self) -> bool:
        return (
            isinstance(self.source, Rejected)
            and isinstance(self.target, Rejected)
            and not self.detach_show_id
            and not self.detach_location_id
        )


def plan_transition(artwork: Artwork, target: AssignmentState) -> TransitionPlan:
    """
    Work out the side effects of moving `artwork` into `target`.

    Raises:
        ValidationError: the artwork is marked shown in a show other than
            the one it is assigned to.
    """
    source = state_of(artwork)
    if isinstance(target, Shown):
        if artwork.artshow_id and artwork.artshow_id != target.show_id:
            raise ValidationError(
                f"Artwork {artwork.id} is assigned to show {artwork.artshow_id}, not {target.show_id}",
                details={"artwork_id": artwork.id, "artshow_id": artwork.artshow_id},
            )
        return TransitionPlan(source=source, target=target, record_history=True)

    keep_show = isinstance(target, Accepted) and target.show_id == artwork.artshow_id
    keep_location = isinstance(target, Accepted) and target.location_id == artwork.location_id

    # Stale references are detached whatever the recorded status says
    return TransitionPlan(
        source=source,
        target=target,
        detach_show_id="" if keep_show else artwork.artshow_id,
        detach_location_id="" if keep_location else artwork.location_id,
        attach=isinstance(target, Accepted),
    )
