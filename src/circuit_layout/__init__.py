"""circuit-layout: Deterministic textbook-style layouts for circuit topologies."""

__version__ = "0.1.0"
