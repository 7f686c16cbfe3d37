"""Neuroevolution of feedforward driving controllers."""

__version__ = "0.1.0"
