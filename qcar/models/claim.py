"""Claim report input data models."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class PhotoGuide:
    """
    One canonical accident-scene shot type.

    Attributes:
        id: 1-based guide slot
        label: Label printed beside the photo in the report
        tip: Capture hint shown to the user
    """
    id: int
    label: str
    tip: str


PHOTO_GUIDES: Tuple[PhotoGuide, ...] = (
    PhotoGuide(1, "Front Damage", "Capture the front of the vehicle showing any damage to bumper, hood, or headlights"),
    PhotoGuide(2, "Rear Damage", "Show the back of the vehicle including trunk, taillights, and rear bumper"),
    PhotoGuide(3, "Driver Side", "Photograph the entire left side of the vehicle from door to fender"),
    PhotoGuide(4, "Passenger Side", "Photograph the entire right side of the vehicle from door to fender"),
    PhotoGuide(5, "Traffic & Signs", "Capture any traffic lights, stop signs, speed limits, or road markings near the scene"),
    PhotoGuide(6, "Wide Shot", "Stand back 10-15 feet and capture both vehicles showing their positions after impact"),
)

MAX_PHOTOS = len(PHOTO_GUIDES)
MAX_WITNESSES = 2


@dataclass
class ClaimPhoto:
    """
    A scene photo already paired with its guide label.

    Attributes:
        guide_label: Canonical label for the shot
        image_bytes: Raw encoded image (JPEG, PNG, ...)
        filename: Original upload name
    """
    guide_label: str
    image_bytes: bytes
    filename: str = "photo.jpg"


def pair_photos_with_guides(
    images: Sequence[Union[bytes, Tuple[str, bytes]]]
) -> List[ClaimPhoto]:
    """
    Pair collected photos with guide labels by position.

    The Nth image receives the Nth label of PHOTO_GUIDES. Callers must pass
    images in capture order.

    Args:
        images: Raw bytes or (filename, bytes) tuples

    Returns:
        List of ClaimPhoto in the same order

    Raises:
        ValueError: If more photos than guide slots are supplied
    """
    if len(images) > MAX_PHOTOS:
        raise ValueError(f"At most {MAX_PHOTOS} photos are supported, got {len(images)}")

    photos = []
    for guide, item in zip(PHOTO_GUIDES, images):
        if isinstance(item, tuple):
            filename, content = item
        else:
            filename, content = f"photo_{guide.id}.jpg", item
        photos.append(ClaimPhoto(guide_label=guide.label, image_bytes=content, filename=filename))
    return photos


@dataclass
class Incident:
    """Facts about the accident itself."""
    location: Optional[str] = None
    occurred_at: Optional[datetime] = None
    weather: Optional[str] = None
    description: Optional[str] = None


@dataclass
class PersonalInfo:
    full_name: Optional[str] = None
    id_number: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


@dataclass
class LicenseInfo:
    number: Optional[str] = None
    year_of_issue: Optional[int] = None
    expiry: Optional[str] = None


@dataclass
class VehicleInfo:
    plate: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    vin: Optional[str] = None
    vehicle_type: Optional[str] = None


@dataclass
class PolicyInfo:
    number: Optional[str] = None
    insurer: Optional[str] = None
    coverage_type: Optional[str] = None
    valid_from: Optional[str] = None
    valid_until: Optional[str] = None
    holder_name: Optional[str] = None
    holder_id: Optional[str] = None
    agent_name: Optional[str] = None


@dataclass
class PartyDetails:
    """
    Identity, license, vehicle and policy of one party.

    Claimant and counterparty share this shape. Every field may be absent
    since the third party is often only partially known.
    """
    personal: PersonalInfo = field(default_factory=PersonalInfo)
    license: LicenseInfo = field(default_factory=LicenseInfo)
    vehicle: VehicleInfo = field(default_factory=VehicleInfo)
    policy: PolicyInfo = field(default_factory=PolicyInfo)

    @property
    def has_name(self) -> bool:
        return bool((self.personal.full_name or "").strip())

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PartyDetails":
        data = _mapping(data, "party")
        return cls(
            personal=_build(PersonalInfo, _get(data, "personal")),
            license=_build(LicenseInfo, _get(data, "license")),
            vehicle=_build(VehicleInfo, _get(data, "vehicle")),
            policy=_build(PolicyInfo, _get(data, "policy")),
        )


@dataclass
class Witness:
    name: str = ""
    phone: str = ""
    address: str = ""
    statement: str = ""


@dataclass
class ReporterContact:
    """Contact details of the person submitting a guest report."""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass
class ClaimReportInput:
    """
    Everything needed to render one claim report.

    Attributes:
        claim_id: Report identifier printed in the header
        generated_at: Generation timestamp
        status: Free-text claim status (e.g. "submitted", "draft")
        incident: Location, time, weather and narrative
        claimant: Party filing the report
        counterparty: Other party, None when unknown
        has_witnesses: Whether the user declared witnesses
        witnesses: Up to two witness entries
        photos: Up to six photos, already paired with guide labels
        reporter: Optional reporter contact block
        filed_at: Filing date for the status box; generated_at when absent
    """
    claim_id: str
    generated_at: datetime
    status: Optional[str] = None
    incident: Incident = field(default_factory=Incident)
    claimant: PartyDetails = field(default_factory=PartyDetails)
    counterparty: Optional[PartyDetails] = None
    has_witnesses: bool = False
    witnesses: List[Witness] = field(default_factory=list)
    photos: List[ClaimPhoto] = field(default_factory=list)
    reporter: Optional[ReporterContact] = None
    filed_at: Optional[datetime] = None

    def __post_init__(self):
        if len(self.witnesses) > MAX_WITNESSES:
            raise ValueError(f"At most {MAX_WITNESSES} witnesses are supported")
        if len(self.photos) > MAX_PHOTOS:
            raise ValueError(f"At most {MAX_PHOTOS} photos are supported")

    def included_witnesses(self) -> List[Tuple[int, Witness]]:
        """Witnesses that appear in the report, with their 1-based slot."""
        if not self.has_witnesses:
            return []
        return [
            (slot, witness)
            for slot, witness in enumerate(self.witnesses, start=1)
            if (witness.name or "").strip()
        ]

    def witness_count(self) -> int:
        return len(self.included_witnesses())

    def includes_counterparty(self) -> bool:
        return self.counterparty is not None and self.counterparty.has_name

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        photos: Optional[List[ClaimPhoto]] = None
    ) -> "ClaimReportInput":
        """
        Build an input from a JSON payload.

        Keys may be snake_case or camelCase. Photos travel separately since
        they are binary uploads.

        Args:
            data: Decoded JSON payload
            photos: Photos already paired with guide labels

        Returns:
            ClaimReportInput instance
        """
        incident_data = _mapping(_get(data, "incident"), "incident")
        incident = Incident(
            location=_get(incident_data, "location"),
            occurred_at=_parse_datetime(_get(incident_data, "occurred_at")),
            weather=_get(incident_data, "weather"),
            description=_get(incident_data, "description"),
        )

        counterparty_data = _get(data, "counterparty")
        reporter_data = _get(data, "reporter")
        witnesses = _get(data, "witnesses") or []
        if not isinstance(witnesses, list):
            raise TypeError("witnesses must be a list")

        return cls(
            claim_id=_get(data, "claim_id") or "",
            generated_at=_parse_datetime(_get(data, "generated_at")) or datetime.now(),
            status=_get(data, "status"),
            incident=incident,
            claimant=PartyDetails.from_dict(_get(data, "claimant")),
            counterparty=PartyDetails.from_dict(counterparty_data) if counterparty_data else None,
            has_witnesses=bool(_get(data, "has_witnesses")),
            witnesses=[_build(Witness, w) for w in witnesses],
            photos=list(photos or []),
            reporter=_build(ReporterContact, reporter_data) if reporter_data else None,
            filed_at=_parse_datetime(_get(data, "filed_at")),
        )


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _get(data: Dict[str, Any], name: str) -> Any:
    if name in data:
        return data[name]
    return data.get(_camel(name))


def _mapping(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise TypeError(f"{name} must be an object, got {type(value).__name__}")
    return value


def _build(model, data: Optional[Dict[str, Any]]):
    data = _mapping(data, model.__name__)
    values = {}
    for f in fields(model):
        value = _get(data, f.name)
        if value is not None:
            values[f.name] = value
    return model(**values)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
