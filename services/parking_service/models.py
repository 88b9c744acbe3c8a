"""
Parking spot and booking data models.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from services.auth_service.models import parse_timestamp, record_id


@dataclass(frozen=True)
class ParkingSpot:
    """A physical parking location"""
    spot_id: str
    number: str
    location: str = ""
    occupied: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParkingSpot':
        if not isinstance(data, dict):
            raise ValueError("parking spot must be an object")
        return cls(
            spot_id=record_id(data),
            number=str(data.get("number", "")),
            location=str(data.get("location") or ""),
            occupied=bool(data.get("occupied", False)),
        )


@dataclass(frozen=True)
class Booking:
    """A vehicle parked on a spot since start_time"""
    booking_id: str
    vehicle_number: str
    spot: Optional[ParkingSpot] = None
    spot_id: Optional[str] = None
    start_time: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Booking':
        if not isinstance(data, dict):
            raise ValueError("booking must be an object")

        # The list endpoint embeds the spot; the create endpoint may only reference it
        raw_spot = data.get("spot", data.get("spotId"))
        spot = None
        spot_id = None
        if isinstance(raw_spot, dict):
            spot = ParkingSpot.from_dict(raw_spot)
            spot_id = spot.spot_id
        elif raw_spot is not None:
            spot_id = str(raw_spot)

        return cls(
            booking_id=record_id(data),
            vehicle_number=str(data.get("vehicleNumber", "")),
            spot=spot,
            spot_id=spot_id,
            start_time=parse_timestamp(data.get("startTime")),
        )

    @property
    def spot_number(self) -> str:
        return self.spot.number if self.spot else "—"

    @property
    def spot_location(self) -> str:
        return self.spot.location if self.spot else "—"
