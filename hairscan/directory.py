# hairscan/directory.py
import csv
import logging
import warnings
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import DataLoadWarning
from .models import Practitioner

logger = logging.getLogger(__name__)

SPECIALTY_COLUMNS = ("speciality", "Speciality", "Specialty", "specialty")
NAME_COLUMNS      = ("doctor_name", "Name", "name")
LOCATION_COLUMNS  = ("city", "City", "location")
SPECIALTY_KEYWORDS = ("dermat", "skin", "hair")

FALLBACK_PRACTITIONER = Practitioner(
    name="Dr Test",
    qualification="MD Dermatology",
    speciality="Dermatology",
    location="Mumbai",
    phone="+91 9999999999",
    address="Fallback Clinic",
    website="example.com",
    registration="MH-0000",
    source="fallback",
)


def _first(row: Mapping[str, Optional[str]], columns: Sequence[str], default: str = "") -> str:
    for column in columns:
        value = row.get(column)
        if value and value.strip():
            return value.strip()
    return default


def is_relevant_specialty(specialty: str) -> bool:
    lowered = specialty.lower()
    return any(keyword in lowered for keyword in SPECIALTY_KEYWORDS)


def practitioner_from_row(row: Mapping[str, Optional[str]], source: str) -> Optional[Practitioner]:
    """
    Map one CSV row to a Practitioner, or None if the row's specialty is
    not dermatology, skin or hair related.
    """
    specialty = _first(row, SPECIALTY_COLUMNS)
    if not is_relevant_specialty(specialty):
        return None
    return Practitioner(
        name=_first(row, NAME_COLUMNS),
        qualification=_first(row, ("qualification",), "N/A"),
        speciality=specialty,
        location=_first(row, LOCATION_COLUMNS),
        phone=_first(row, ("phone",)),
        address=_first(row, ("address",)),
        website=_first(row, ("website",)),
        registration=_first(row, ("registration",), "N/A"),
        source=source,
    )


class DirectoryStore:
    """Read-only, load-once collection of practitioners."""

    def __init__(self, records: Iterable[Practitioner], is_fallback: bool = False):
        self._records: Tuple[Practitioner, ...] = tuple(records)
        self.is_fallback = is_fallback

    @classmethod
    def load(cls, source_path) -> "DirectoryStore":
        path = Path(source_path)
        logger.info(f"Reading practitioner dataset from {path}")

        if not path.is_file():
            return cls._fallback(f"Dataset {path} not found")

        try:
            with path.open(newline="", encoding="utf-8-sig") as f:
                records = [
                    practitioner
                    for practitioner in (practitioner_from_row(row, path.name) for row in csv.DictReader(f))
                    if practitioner is not None
                ]
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            return cls._fallback(f"Dataset {path} could not be read: {e}")

        logger.info(f"Loaded {len(records)} dermatologists from {path.name}")
        return cls(records)

    @classmethod
    def _fallback(cls, reason: str) -> "DirectoryStore":
        message = f"{reason}; serving a single placeholder practitioner"
        logger.warning(message)
        warnings.warn(message, DataLoadWarning, stacklevel=3)
        return cls([FALLBACK_PRACTITIONER], is_fallback=True)

    @property
    def records(self) -> Tuple[Practitioner, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def find(self, location_text: Optional[str] = None) -> List[Practitioner]:
        """
        Case-insensitive substring match on location, in load order.
        An absent or blank location returns every record; no match returns [].
        """
        needle = (location_text or "").strip().lower()
        if not needle:
            return list(self._records)
        return [record for record in self._records if needle in record.location.lower()]
