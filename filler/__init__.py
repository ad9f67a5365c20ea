"""Filler decision engine: placement legality, heuristic scoring and the VM player loop."""

__version__ = "0.1.0"
