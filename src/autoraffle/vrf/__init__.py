"""Randomness coordinator for local networks."""

from autoraffle.vrf.coordinator import LocalVRFCoordinator, derive_words

__all__ = ["LocalVRFCoordinator", "derive_words"]
