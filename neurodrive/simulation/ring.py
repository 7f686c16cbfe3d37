"""Headless ring-shaped track used to train controllers from the command line.

The track is the annulus between two concentric circles. Checkpoints are radial
lines at equal angles; cars drive counter-clockwise starting on the positive
x axis. Car kinematics follow a simple arcade model: throttle adds speed,
friction removes it, steering turns the heading less at high speed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math

import numpy as np
from loguru import logger
from pydantic import BaseModel, Field, model_validator

from neurodrive.agents.agent import Agent
from neurodrive.agents.controls import build_inputs, decode_actions
from neurodrive.agents.fitness import DrivingStats, FitnessWeights, compute_fitness
from neurodrive.agents.models import BehaviorDescriptor, StartPose, TerminalState
from neurodrive.simulation.base import Simulation

CAR_RADIUS = 4.0
ZONE_SIZE = 50.0
STUCK_CHECK_FRAMES = 30
STUCK_MOVEMENT = 5.0
MAX_STUCK = 10
# Cars are pushed to this speed during their first frames.
LAUNCH_SPEED = 1.0
LAUNCH_FRAMES = 60


class PhysicsConfig(BaseModel):
    max_speed: float = Field(default=6.0, gt=0)
    acceleration: float = Field(default=0.25, gt=0)
    friction: float = Field(default=0.05, ge=0, lt=1)
    turn_speed: float = Field(default=0.06, gt=0)
    turn_reduction: float = Field(default=0.6, ge=0, le=1)


class RingTrackConfig(BaseModel):
    inner_radius: float = Field(default=150.0, gt=0)
    width: float = Field(default=55.0, gt=2 * CAR_RADIUS)
    checkpoint_count: int = Field(default=16, ge=2)
    sensor_count: int = Field(default=7, ge=2)
    sensor_range: float = Field(default=120.0, gt=0)
    max_frames: int = Field(default=3000, ge=1)

    @model_validator(mode="after")
    def _validate_sensors(self) -> RingTrackConfig:
        if self.sensor_range <= CAR_RADIUS:
            raise ValueError("sensor_range must exceed the car radius")
        return self

    @property
    def outer_radius(self) -> float:
        return self.inner_radius + self.width


@dataclass
class _Car:
    agent: Agent
    x: float
    y: float
    angle: float
    speed: float = 0.0
    frame: int = 0
    progress: float = 0.0
    checkpoints_passed: int = 0
    laps: int = 0
    current_lap_time: int = 0
    best_lap_time: float = math.inf
    total_distance: float = 0.0
    total_speed: float = 0.0
    speed_samples: int = 0
    stuck_counter: int = 0
    last_x: float = 0.0
    last_y: float = 0.0
    min_distance_to_next: float = math.inf
    dir_x: float = 0.0
    dir_y: float = 0.0
    zones: set[tuple[int, int]] = field(default_factory=set)

    @property
    def avg_speed(self) -> float:
        return self.total_speed / self.speed_samples if self.speed_samples else 0.0


class RingTrackSimulation(Simulation):
    def __init__(
        self,
        track: RingTrackConfig | None = None,
        physics: PhysicsConfig | None = None,
        fitness: FitnessWeights | None = None,
    ):
        self.track = track or RingTrackConfig()
        self.physics = physics or PhysicsConfig()
        self.weights = fitness or FitnessWeights()

        spread = math.pi
        step = spread / (self.track.sensor_count - 1)
        self.sensor_angles = np.array(
            [-spread / 2 + i * step for i in range(self.track.sensor_count)]
        )
        self._checkpoint_arc = 2 * math.pi / self.track.checkpoint_count

    @property
    def start_pose(self) -> StartPose:
        mid = self.track.inner_radius + self.track.width / 2
        return StartPose(x=mid, y=0.0, angle=math.pi / 2)

    @property
    def sensor_count(self) -> int:
        return self.track.sensor_count

    # -------------------------- Geometry --------------------------

    def _ray_length(self, x: float, y: float, heading: float) -> float:
        """Distance along a ray to the nearest wall, capped at the sensor range."""
        dx, dy = math.cos(heading), math.sin(heading)
        b = x * dx + y * dy
        c0 = x * x + y * y
        nearest = self.track.sensor_range
        for radius in (self.track.inner_radius, self.track.outer_radius):
            disc = b * b - (c0 - radius * radius)
            if disc < 0:
                continue
            root = math.sqrt(disc)
            for t in (-b - root, -b + root):
                if 0 <= t < nearest:
                    nearest = t
        return nearest

    def _sensors(self, car: _Car) -> list[float]:
        rng = self.track.sensor_range
        return [
            self._ray_length(car.x, car.y, car.angle + offset) / rng
            for offset in self.sensor_angles
        ]

    def _next_checkpoint(self, car: _Car) -> tuple[float, float]:
        theta = (car.checkpoints_passed + 1) * self._checkpoint_arc
        mid = self.track.inner_radius + self.track.width / 2
        return mid * math.cos(theta), mid * math.sin(theta)

    def _collides(self, car: _Car) -> bool:
        r = math.hypot(car.x, car.y)
        return (
            r - CAR_RADIUS <= self.track.inner_radius
            or r + CAR_RADIUS >= self.track.outer_radius
        )

    # -------------------------- Stepping --------------------------

    def _update_checkpoint_direction(self, car: _Car) -> None:
        cx, cy = self._next_checkpoint(car)
        dx, dy = cx - car.x, cy - car.y
        distance = math.hypot(dx, dy)
        relative = math.atan2(dy, dx) - car.angle
        car.dir_x, car.dir_y = math.cos(relative), math.sin(relative)
        car.min_distance_to_next = min(car.min_distance_to_next, distance)

    def _step(self, car: _Car) -> bool:
        """Advance one frame; returns True when the car reached a terminal state."""
        p = self.physics
        car.frame += 1
        car.current_lap_time += 1

        self._update_checkpoint_direction(car)
        inputs = build_inputs(
            self._sensors(car), car.speed, p.max_speed, (car.dir_x, car.dir_y)
        )
        action = decode_actions(car.agent.controller.predict(inputs))

        if action.throttle > 0:
            car.speed += p.acceleration * action.throttle
        else:
            car.speed += p.acceleration * action.throttle * 0.5
        if car.speed < LAUNCH_SPEED and car.frame < LAUNCH_FRAMES:
            car.speed = LAUNCH_SPEED

        if car.speed > 0.1:
            factor = 1 - (car.speed / p.max_speed) * p.turn_reduction
            car.angle += p.turn_speed * action.steering * 2 * factor

        car.speed *= 1 - p.friction
        car.speed = max(0.0, min(p.max_speed, car.speed))
        if car.speed > 0:
            car.total_speed += car.speed
            car.speed_samples += 1

        prev_x, prev_y = car.x, car.y
        prev_theta = math.atan2(prev_y, prev_x)
        car.x += math.cos(car.angle) * car.speed
        car.y += math.sin(car.angle) * car.speed
        car.total_distance += math.hypot(car.x - prev_x, car.y - prev_y)
        car.zones.add((math.floor(car.x / ZONE_SIZE), math.floor(car.y / ZONE_SIZE)))

        delta = math.atan2(car.y, car.x) - prev_theta
        car.progress += (delta + math.pi) % (2 * math.pi) - math.pi

        if car.frame % STUCK_CHECK_FRAMES == 0:
            moved = math.hypot(car.x - car.last_x, car.y - car.last_y)
            if moved < STUCK_MOVEMENT:
                car.stuck_counter += 1
            else:
                car.stuck_counter = max(0, car.stuck_counter - 1)
            car.last_x, car.last_y = car.x, car.y

        finished_lap = False
        if car.progress >= (car.checkpoints_passed + 1) * self._checkpoint_arc:
            car.checkpoints_passed += 1
            car.stuck_counter = 0
            car.min_distance_to_next = math.inf
            if car.checkpoints_passed % self.track.checkpoint_count == 0:
                car.laps += 1
                car.best_lap_time = min(car.best_lap_time, car.current_lap_time)
                car.current_lap_time = 0
                finished_lap = True

        car.agent.observe(compute_fitness(self._stats(car), self.weights))

        return (
            finished_lap
            or self._collides(car)
            or car.stuck_counter > MAX_STUCK
            or car.frame >= self.track.max_frames
        )

    def _stats(self, car: _Car) -> DrivingStats:
        return DrivingStats(
            laps=car.laps,
            checkpoints_passed=car.checkpoints_passed,
            min_distance_to_next_checkpoint=car.min_distance_to_next,
            checkpoint_dir_x=car.dir_x,
            total_distance=car.total_distance,
            avg_speed=car.avg_speed,
            zones_visited=len(car.zones),
            stuck_counter=car.stuck_counter,
        )

    def _finish(self, car: _Car) -> None:
        car.agent.finish(
            TerminalState(
                fitness=compute_fitness(self._stats(car), self.weights),
                laps=car.laps,
                best_lap_time=car.best_lap_time,
                behavior=BehaviorDescriptor(
                    final_x=car.x,
                    final_y=car.y,
                    checkpoints_passed=car.checkpoints_passed,
                    total_distance=car.total_distance,
                    avg_speed=car.avg_speed,
                ),
            )
        )

    def run_generation(self, agents: list[Agent]) -> None:
        start = self.start_pose
        cars = [
            _Car(agent=a, x=start.x, y=start.y, angle=start.angle, last_x=start.x, last_y=start.y)
            for a in agents
            if a.alive
        ]
        frames = 0
        while cars:
            frames += 1
            still_running = []
            for car in cars:
                if self._step(car):
                    self._finish(car)
                else:
                    still_running.append(car)
            cars = still_running
        logger.debug("[RingTrackSimulation] Generation finished after {} frames", frames)
