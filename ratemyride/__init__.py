"""RateMyRide tipping backend."""
