from neurodrive.controller.network import MUTATION_STEP, Controller, ControllerSnapshot

__all__ = ["Controller", "ControllerSnapshot", "MUTATION_STEP"]
