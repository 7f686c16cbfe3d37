from neurodrive.simulation.base import Simulation
from neurodrive.simulation.ring import PhysicsConfig, RingTrackConfig, RingTrackSimulation

__all__ = ["PhysicsConfig", "RingTrackConfig", "RingTrackSimulation", "Simulation"]
