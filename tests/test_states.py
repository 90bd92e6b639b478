import pytest

from careflow.core.states import REQUEST_STATES, can_transition, sources_for

def test_sources():
    assert sources_for("matched") == ["pending"]
    assert sources_for("cancelled") == ["pending", "matched"]
    assert sources_for("fulfilled") == ["matched"]
    assert sources_for("pending") == []

@pytest.mark.parametrize("src", ["fulfilled", "cancelled"])
def test_terminal_states_have_no_exit(src):
    assert not any(can_transition(src, dst) for dst in REQUEST_STATES)
