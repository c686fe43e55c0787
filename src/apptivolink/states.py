"""US state name/code lookup for address updates.

Address entries carry both ``state`` (name) and ``stateCode``; callers
usually only have one of them.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from apptivolink.labels import normalize_label


@dataclass(frozen=True)
class State:
    name: str
    code: str


_STATES = {
    "AL": "Alabama",
    "AK": "Alaska",
    "AZ": "Arizona",
    "AR": "Arkansas",
    "CA": "California",
    "CO": "Colorado",
    "CT": "Connecticut",
    "DE": "Delaware",
    "DC": "District of Columbia",
    "FL": "Florida",
    "GA": "Georgia",
    "HI": "Hawaii",
    "ID": "Idaho",
    "IL": "Illinois",
    "IN": "Indiana",
    "IA": "Iowa",
    "KS": "Kansas",
    "KY": "Kentucky",
    "LA": "Louisiana",
    "ME": "Maine",
    "MD": "Maryland",
    "MA": "Massachusetts",
    "MI": "Michigan",
    "MN": "Minnesota",
    "MS": "Mississippi",
    "MO": "Missouri",
    "MT": "Montana",
    "NE": "Nebraska",
    "NV": "Nevada",
    "NH": "New Hampshire",
    "NJ": "New Jersey",
    "NM": "New Mexico",
    "NY": "New York",
    "NC": "North Carolina",
    "ND": "North Dakota",
    "OH": "Ohio",
    "OK": "Oklahoma",
    "OR": "Oregon",
    "PA": "Pennsylvania",
    "RI": "Rhode Island",
    "SC": "South Carolina",
    "SD": "South Dakota",
    "TN": "Tennessee",
    "TX": "Texas",
    "UT": "Utah",
    "VT": "Vermont",
    "VA": "Virginia",
    "WA": "Washington",
    "WV": "West Virginia",
    "WI": "Wisconsin",
    "WY": "Wyoming",
    "PR": "Puerto Rico",
}

_BY_KEY: Dict[str, State] = {}
for _code, _name in _STATES.items():
    _state = State(name=_name, code=_code)
    _BY_KEY[normalize_label(_code)] = _state
    _BY_KEY[normalize_label(_name)] = _state


def lookup_state(name_or_code: str) -> Optional[State]:
    """Find a state by name or two-letter code (case-insensitive)."""
    return _BY_KEY.get(normalize_label(name_or_code))
