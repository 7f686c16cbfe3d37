from neurodrive.agents.agent import Agent
from neurodrive.agents.agent_state import AgentState
from neurodrive.agents.controls import DrivingAction, build_inputs, decode_actions
from neurodrive.agents.fitness import DrivingStats, FitnessWeights, compute_fitness
from neurodrive.agents.models import BehaviorDescriptor, StartPose, TerminalState

__all__ = [
    "Agent",
    "AgentState",
    "BehaviorDescriptor",
    "DrivingAction",
    "DrivingStats",
    "FitnessWeights",
    "StartPose",
    "TerminalState",
    "build_inputs",
    "compute_fitness",
    "decode_actions",
]
