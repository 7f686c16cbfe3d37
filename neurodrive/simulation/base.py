from abc import ABC, abstractmethod

from neurodrive.agents.agent import Agent
from neurodrive.agents.models import StartPose


class Simulation(ABC):
    """External driver that runs one generation of agents to completion."""

    @property
    @abstractmethod
    def start_pose(self) -> StartPose:
        """Where every agent of a generation starts."""

    @property
    @abstractmethod
    def sensor_count(self) -> int:
        """Number of ray sensors the simulation feeds to a controller."""

    @abstractmethod
    def run_generation(self, agents: list[Agent]) -> None:
        """
        Drive every agent until it is terminal.

        Args:
            agents: Population to simulate; each agent must be finished with a
                TerminalState before this returns.
        """
