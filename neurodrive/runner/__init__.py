from neurodrive.runner.training_runner import TrainingRunner

__all__ = ["TrainingRunner"]
