from __future__ import annotations

import math

from neurodrive.agents.agent_state import AgentState, is_terminal, validate_transition
from neurodrive.agents.models import BehaviorDescriptor, StartPose, TerminalState
from neurodrive.controller.network import Controller


class Agent:
    """Per-individual record the engine works with.

    The simulation layer drives the agent (physics, sensors, rendering live
    outside) and hands over a :class:`TerminalState` through :meth:`finish`.
    Engine-derived scores are only meaningful after that.
    """

    def __init__(self, controller: Controller, start: StartPose | None = None):
        self.controller = controller
        self.start = start or StartPose()
        self.state = AgentState.RUNNING
        self.terminal: TerminalState | None = None

        self._live_fitness = 0.0

        # Written by the engine during selection.
        self.shared_fitness = 0.0
        self.novelty = 0.0
        self.combined_score = 0.0

    def __repr__(self) -> str:
        return (
            f"Agent(state={self.state.value}, fitness={self.fitness:.2f}, "
            f"controller={self.controller!r})"
        )

    @property
    def alive(self) -> bool:
        return not is_terminal(self.state)

    def observe(self, fitness: float) -> None:
        """Record provisional fitness while the agent is still running."""
        if self.alive:
            self._live_fitness = float(fitness)

    def finish(self, terminal: TerminalState) -> None:
        validate_transition(self.state, AgentState.TERMINAL)
        self.terminal = terminal
        self.state = AgentState.TERMINAL

    @property
    def fitness(self) -> float:
        if self.terminal is None:
            return self._live_fitness
        return self.terminal.fitness

    @property
    def laps(self) -> int:
        return self.terminal.laps if self.terminal else 0

    @property
    def best_lap_time(self) -> float:
        return self.terminal.best_lap_time if self.terminal else math.inf

    @property
    def behavior(self) -> BehaviorDescriptor | None:
        return self.terminal.behavior if self.terminal else None
