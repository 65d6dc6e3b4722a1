"""
Tests for membership helpers, the tagged assignment state and the
transition planner.
"""

import pytest

from artspace.core.exceptions import ValidationError
from artspace.schemas.entities import Artwork, Location, Show, ShowStatus
from artspace.services.relationships import (
    Accepted,
    Rejected,
    Shown,
    Unassigned,
    add_member,
    append_history,
    find_violations,
    remove_member,
    state_fields,
    state_of,
)
from artspace.services.state_machine import plan_transition


def artwork(**fields) -> Artwork:
    return Artwork.model_validate({"id": "A1", "artistId": "a1", **fields})


def test_add_member_deduplicates_and_tolerates_missing_arrays():
    assert add_member(None, "A1") == ["A1"]
    assert add_member(["A1"], "A1") == ["A1"]
    assert add_member(["A1"], "A2") == ["A1", "A2"]
    assert add_member(["A1"], "") == ["A1"]


def test_remove_member_is_a_noop_for_absent_ids():
    assert remove_member(["A1", "A2"], "A1") == ["A2"]
    assert remove_member(None, "A1") == []
    assert remove_member(["A2"], "A1") == ["A2"]


def test_append_history_only_suppresses_adjacent_repeats():
    assert append_history([], "s1") == ["s1"]
    assert append_history(["s1"], "s1") == ["s1"]
    assert append_history(["s1", "s2"], "s1") == ["s1", "s2", "s1"]


def test_null_fields_read_as_empty():
    work = Artwork.model_validate({"id": "A1", "artshowId": None, "showStatus": None, "beenInShows": None})
    assert work.artshow_id == ""
    assert work.show_status == ShowStatus.NONE
    assert work.been_in_shows == []


def test_extra_document_fields_are_preserved():
    work = artwork(title="Dawn", images=["a.png"])
    document = work.to_document()
    assert document["title"] == "Dawn"
    assert document["images"] == ["a.png"]
    assert document["artistId"] == "a1"


def test_accepted_requires_a_show():
    with pytest.raises(ValidationError):
        Accepted("", "l1")
    with pytest.raises(ValidationError):
        Shown("")


def test_state_of_reads_tagged_state():
    assert state_of(artwork()) == Unassigned()
    assert state_of(artwork(showStatus="rejected")) == Rejected()
    assert state_of(artwork(showStatus="accepted", artshowId="s1", locationId="l1")) == Accepted("s1", "l1")
    # Legacy "accepted" with no show reads as unassigned
    assert state_of(artwork(showStatus="accepted")) == Unassigned()


def test_state_of_shown_falls_back_to_history():
    assert state_of(artwork(showStatus="shown", beenInShows=["s0", "s1"])) == Shown("s1")


def test_state_fields_clear_references_on_rejection():
    assert state_fields(Rejected()) == {"artshowId": "", "locationId": "", "showStatus": "rejected"}
    assert state_fields(Accepted("s1", "l1"))["artshowId"] == "s1"
    assert state_fields(Shown("s1")) == {"showStatus": "shown"}


def test_shown_artwork_can_rejoin_a_new_show():
    plan = plan_transition(artwork(showStatus="shown", beenInShows=["s1"]), Accepted("s2", "l2"))

    assert plan.attach
    assert not plan.is_noop
    assert plan.detach_show_id == ""


def test_plan_reassignment_detaches_old_references():
    plan = plan_transition(
        artwork(showStatus="accepted", artshowId="s1", locationId="l1"),
        Accepted("s2", "l2"),
    )
    assert plan.detach_show_id == "s1"
    assert plan.detach_location_id == "l1"
    assert plan.attach


def test_plan_same_assignment_keeps_references():
    plan = plan_transition(
        artwork(showStatus="accepted", artshowId="s1", locationId="l1"),
        Accepted("s1", "l1"),
    )
    assert plan.detach_show_id == ""
    assert plan.detach_location_id == ""


def test_plan_rejecting_rejected_artwork_is_noop():
    assert plan_transition(artwork(showStatus="rejected"), Rejected()).is_noop
    assert not plan_transition(artwork(), Rejected()).is_noop


def test_plan_rejects_marking_shown_in_another_show():
    with pytest.raises(ValidationError):
        plan_transition(artwork(showStatus="accepted", artshowId="s1"), Shown("s2"))


def test_find_violations_reports_dangling_membership():
    show = Show.model_validate({"id": "s1", "artworkIds": ["A1"], "artworkOrder": ["A1", "A9"]})
    location = Location.model_validate({"id": "l1", "artworkIds": []})
    works = [artwork(showStatus="rejected")]

    invariants = {v.invariant for v in find_violations(works, [show], [location])}

    assert "rejection_clears_references" in invariants
    assert "order_subset_of_membership" in invariants


def test_find_violations_skips_closed_shows():
    show = Show.model_validate({"id": "s1", "status": "closed", "artworkIds": ["A1"], "artworkOrder": ["A1"]})
    works = [artwork(showStatus="shown", beenInShows=["s1"])]

    assert find_violations(works, [show], []) == []
