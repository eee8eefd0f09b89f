"""Showcase seating package."""
from .models import Person, Studio, StudioPair, SeatingUnit, Table, AssignmentResult
from .errors import SeatingError, ConfigurationError, DataIntegrityError
from .csv_loader import (
    load_people,
    load_studios,
    load_pairs,
    load_all,
)
from .units import build_units
from .placer import place
from .balance import distribute
from .solver import SeatingModel

__all__ = [
    "Person",
    "Studio",
    "StudioPair",
    "SeatingUnit",
    "Table",
    "AssignmentResult",
    "SeatingError",
    "ConfigurationError",
    "DataIntegrityError",
    "load_people",
    "load_studios",
    "load_pairs",
    "load_all",
    "build_units",
    "place",
    "distribute",
    "SeatingModel",
]
