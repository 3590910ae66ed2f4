"""Cycle-level simulator of a five-stage RISC-V pipeline, with optional forwarding."""

__version__ = "0.1.0"