REQUEST_STATES = ["pending", "matched", "fulfilled", "cancelled"]

# fulfilled / cancelled are terminal; there is no matched -> pending edge
TRANSITIONS = {
    ("pending", "matched"),
    ("pending", "cancelled"),
    ("matched", "fulfilled"),
    ("matched", "cancelled"),
}

def can_transition(src: str, dst: str) -> bool:
    return (src, dst) in TRANSITIONS

def sources_for(dst: str) -> list[str]:
    """States from which `dst` is reachable, in REQUEST_STATES order."""
    return [s for s in REQUEST_STATES if can_transition(s, dst)]
