# services/travel.py
from typing import Any, Dict, Protocol


class TravelClient(Protocol):
    """
    Travel inventory collaborator (flights, hotels, bookings, directions).
    Each call returns a human-readable summary plus raw data.
    """

    async def perform(self, action: str, params: Dict[str, Any], user_id: str) -> Dict[str, Any]: ...
