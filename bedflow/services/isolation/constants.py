"""
Infection-control lookup tables.
"""

from typing import Dict, List, Tuple

from bedflow.models.base.enums import IsolationType

# ICD-10 code prefixes per isolation category
ISOLATION_DIAGNOSIS_PREFIXES: Dict[IsolationType, Tuple[str, ...]] = {
    IsolationType.CONTACT: (
        "A04",    # bacterial intestinal infections (C. diff)
        "B95.6",  # MRSA
        "B96.2",  # E. coli
        "A41",    # sepsis
        "L08",    # skin infections
    ),
    IsolationType.DROPLET: (
        "J09",  # influenza
        "J10",
        "J11",
        "J18",  # pneumonia
        "A37",  # pertussis
        "B05",  # measles
        "B06",  # rubella
    ),
    IsolationType.AIRBORNE: (
        "A15",    # respiratory tuberculosis
        "A16",
        "B05",    # measles
        "B01",    # varicella
        "A48.1",  # legionnaires' disease
    ),
    IsolationType.PROTECTIVE: (
        "D70",  # neutropenia
        "C91",  # lymphoid leukemia
        "C92",  # myeloid leukemia
        "Z94",  # transplant status
    ),
}

# Organism markers matched against the upper-cased lab test name
ISOLATION_LAB_ORGANISMS: Dict[IsolationType, Tuple[str, ...]] = {
    IsolationType.CONTACT: ("MRSA", "VRE", "C.DIFF", "CRE", "ESBL"),
    IsolationType.DROPLET: ("INFLUENZA", "RSV", "ADENOVIRUS"),
    IsolationType.AIRBORNE: ("TB", "MEASLES", "VARICELLA"),
}

# Most restrictive first
ISOLATION_PRIORITY: Tuple[IsolationType, ...] = (
    IsolationType.AIRBORNE,
    IsolationType.DROPLET,
    IsolationType.CONTACT,
    IsolationType.PROTECTIVE,
)

STANDARD_PRECAUTIONS: List[str] = ["Standard precautions"]

PPE_REQUIREMENTS: Dict[IsolationType, List[str]] = {
    IsolationType.CONTACT: ["Gloves", "Gown"],
    IsolationType.DROPLET: ["Gloves", "Gown", "Surgical mask", "Eye protection"],
    IsolationType.AIRBORNE: ["Gloves", "Gown", "N95 respirator", "Eye protection"],
    IsolationType.PROTECTIVE: ["Gloves", "Gown", "Mask"],
}

ANTEROOM_TYPES = frozenset({IsolationType.AIRBORNE, IsolationType.PROTECTIVE})

RECENT_DIAGNOSIS_LIMIT = 10
POSITIVE_LAB_LOOKBACK_DAYS = 30
