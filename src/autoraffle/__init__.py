"""autoraffle - automated raffle engine with verifiable randomness."""

__version__ = "0.1.0"
