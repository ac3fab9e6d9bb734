"""Flight API adapters."""

from travelsphere.adapters.flight.mock import MockFlightApi
from travelsphere.adapters.flight.real import FlightApiClient

__all__ = ["FlightApiClient", "MockFlightApi"]
