"""Hotel API adapters."""

from travelsphere.adapters.hotel.mock import MockHotelApi
from travelsphere.adapters.hotel.real import HotelApiClient

__all__ = ["HotelApiClient", "MockHotelApi"]
