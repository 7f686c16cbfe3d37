from enum import Enum


class AgentState(str, Enum):
    RUNNING = "running"
    TERMINAL = "terminal"


VALID_TRANSITIONS: dict[AgentState, set[AgentState]] = {
    AgentState.RUNNING: {AgentState.TERMINAL},
    AgentState.TERMINAL: set(),
}


def is_valid_transition(current: AgentState, new: AgentState) -> bool:
    return new in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: AgentState, new: AgentState) -> None:
    if not is_valid_transition(current, new):
        valid_next = VALID_TRANSITIONS.get(current, set())
        raise ValueError(
            f"Invalid agent transition: {current.value} -> {new.value}. "
            f"Valid transitions from {current.value}: {[s.value for s in valid_next]}"
        )


def is_terminal(state: AgentState) -> bool:
    return state == AgentState.TERMINAL
