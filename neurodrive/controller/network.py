from __future__ import annotations

from typing import Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic_core import PydanticCustomError

from neurodrive.exceptions import DimensionMismatchError

__all__ = ["Controller", "ControllerSnapshot", "MUTATION_STEP"]

# Maximum absolute perturbation applied to a mutated parameter.
MUTATION_STEP = 0.5
# Validation error type for tensors that disagree with the declared sizes.
SHAPE_ERROR = "tensor_shape"

Shape = tuple[int, int, int]


class ControllerSnapshot(BaseModel):
    """Plain-data form of a controller: three sizes and four tensors."""

    input_size: int = Field(gt=0, description="Length of the sensor/state vector")
    hidden_size: int = Field(gt=0, description="Number of hidden neurons")
    output_size: int = Field(gt=0, description="Length of the action vector")
    weights_input_hidden: list[list[float]] = Field(
        description="hidden_size rows of input_size weights"
    )
    weights_hidden_output: list[list[float]] = Field(
        description="output_size rows of hidden_size weights"
    )
    bias_hidden: list[float] = Field(description="hidden_size biases")
    bias_output: list[float] = Field(description="output_size biases")

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validate_tensor_shapes(self) -> ControllerSnapshot:
        expected = {
            "weights_input_hidden": (self.hidden_size, self.input_size),
            "weights_hidden_output": (self.output_size, self.hidden_size),
            "bias_hidden": (self.hidden_size,),
            "bias_output": (self.output_size,),
        }
        for name, shape in expected.items():
            try:
                actual = np.asarray(getattr(self, name), dtype=np.float64).shape
            except ValueError:
                actual = "ragged"
            if actual != shape:
                raise PydanticCustomError(
                    SHAPE_ERROR,
                    "{name} has shape {actual}, expected {expected}",
                    {"name": name, "actual": str(actual), "expected": str(shape)},
                )
        return self


class Controller:
    """Single hidden layer feedforward network with tanh activations.

    Maps a sensor/state vector of ``input_size`` values to ``output_size``
    actions in [-1, 1]. Dimensions are fixed at construction. Reproduction never
    touches a controller that is already driving an agent: ``clone`` and
    ``crossover`` always return a new instance and ``mutate`` is applied to that
    fresh child.
    """

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        output_size: int,
        rng: np.random.Generator | None = None,
    ):
        if min(input_size, hidden_size, output_size) < 1:
            raise ValueError(
                f"Controller sizes must be positive, got "
                f"({input_size}, {hidden_size}, {output_size})"
            )
        self.input_size = input_size
        self.hidden_size = hidden_size
        self.output_size = output_size

        rng = rng if rng is not None else np.random.default_rng()
        self.weights_input_hidden = rng.uniform(-1.0, 1.0, (hidden_size, input_size))
        self.bias_hidden = rng.uniform(-1.0, 1.0, hidden_size)
        self.weights_hidden_output = rng.uniform(
            -1.0, 1.0, (output_size, hidden_size)
        )
        self.bias_output = rng.uniform(-1.0, 1.0, output_size)

    def __repr__(self) -> str:
        return "Controller({}, {}, {})".format(*self.shape)

    @property
    def shape(self) -> Shape:
        return (self.input_size, self.hidden_size, self.output_size)

    def parameters(self) -> list[np.ndarray]:
        """The four tensors, in a fixed order shared by every operator."""
        return [
            self.weights_input_hidden,
            self.bias_hidden,
            self.weights_hidden_output,
            self.bias_output,
        ]

    def _set_parameters(self, params: Sequence[np.ndarray]) -> None:
        (
            self.weights_input_hidden,
            self.bias_hidden,
            self.weights_hidden_output,
            self.bias_output,
        ) = params

    def check_shape(self, shape: Shape) -> None:
        """Raise DimensionMismatchError unless this controller has *shape*."""
        if self.shape != tuple(shape):
            raise DimensionMismatchError(
                f"Controller shape {self.shape} does not match {tuple(shape)}"
            )

    # ------------------------------------------------------------------

    def predict(self, inputs: Sequence[float] | np.ndarray) -> np.ndarray:
        x = np.asarray(inputs, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise DimensionMismatchError(
                f"Expected {self.input_size} inputs, got shape {x.shape}"
            )
        hidden = np.tanh(self.bias_hidden + self.weights_input_hidden @ x)
        return np.tanh(self.bias_output + self.weights_hidden_output @ hidden)

    def clone(self) -> Controller:
        clone = Controller.__new__(Controller)
        clone.input_size = self.input_size
        clone.hidden_size = self.hidden_size
        clone.output_size = self.output_size
        clone._set_parameters([p.copy() for p in self.parameters()])
        return clone

    def mutate(self, rate: float, rng: np.random.Generator) -> None:
        """Perturb each parameter independently with probability *rate*.

        A selected value becomes ``value + uniform(-1, 1) * MUTATION_STEP``.
        """
        mutated = []
        for param in self.parameters():
            mask = rng.random(param.shape) < rate
            delta = rng.uniform(-1.0, 1.0, param.shape) * MUTATION_STEP
            mutated.append(np.where(mask, param + delta, param))
        self._set_parameters(mutated)

    @staticmethod
    def crossover(
        parent_a: Controller, parent_b: Controller, rng: np.random.Generator
    ) -> Controller:
        """Uniform crossover: every parameter comes from A or B with equal odds."""
        if parent_a.shape != parent_b.shape:
            raise DimensionMismatchError(
                f"Cannot cross {parent_a.shape} with {parent_b.shape}"
            )
        child = parent_a.clone()
        child._set_parameters(
            [
                np.where(rng.random(a.shape) < 0.5, a, b)
                for a, b in zip(parent_a.parameters(), parent_b.parameters())
            ]
        )
        return child

    # ------------------------------------------------------------------

    def to_snapshot(self) -> ControllerSnapshot:
        return ControllerSnapshot(
            input_size=self.input_size,
            hidden_size=self.hidden_size,
            output_size=self.output_size,
            weights_input_hidden=self.weights_input_hidden.tolist(),
            weights_hidden_output=self.weights_hidden_output.tolist(),
            bias_hidden=self.bias_hidden.tolist(),
            bias_output=self.bias_output.tolist(),
        )

    @classmethod
    def from_snapshot(cls, snapshot: ControllerSnapshot | dict) -> Controller:
        if isinstance(snapshot, dict):
            try:
                snapshot = ControllerSnapshot.model_validate(snapshot)
            except ValidationError as exc:
                if any(err["type"] != SHAPE_ERROR for err in exc.errors()):
                    raise
                raise DimensionMismatchError(str(exc)) from exc
        controller = cls.__new__(cls)
        controller.input_size = snapshot.input_size
        controller.hidden_size = snapshot.hidden_size
        controller.output_size = snapshot.output_size
        controller._set_parameters(
            [
                np.array(snapshot.weights_input_hidden, dtype=np.float64),
                np.array(snapshot.bias_hidden, dtype=np.float64),
                np.array(snapshot.weights_hidden_output, dtype=np.float64),
                np.array(snapshot.bias_output, dtype=np.float64),
            ]
        )
        return controller
