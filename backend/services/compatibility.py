"""
Blood Type Compatibility
Maps each recipient blood type to the donor blood types it can receive.
"""
from typing import List

# recipient -> compatible donor types
COMPATIBLE_DONORS = {
    "A+": ["A+", "A-", "O+", "O-"],
    "A-": ["A-", "O-"],
    "B+": ["B+", "B-", "O+", "O-"],
    "B-": ["B-", "O-"],
    "AB+": ["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"],  # Universal recipient
    "AB-": ["A-", "B-", "AB-", "O-"],
    "O+": ["O+", "O-"],
    "O-": ["O-"],
}


def compatible_donor_types(recipient_blood_type: str) -> List[str]:
    """
    Blood types that can donate to the given recipient type.

    Unknown types fall back to a list holding only the input.
    """
    return list(COMPATIBLE_DONORS.get(recipient_blood_type, [recipient_blood_type]))


def compatible_recipient_types(donor_blood_type: str) -> List[str]:
    """Blood types that can receive from the given donor type."""
    return [
        recipient
        for recipient, donors in COMPATIBLE_DONORS.items()
        if donor_blood_type in donors
    ]


def is_compatible(donor_blood_type: str, recipient_blood_type: str) -> bool:
    return donor_blood_type in COMPATIBLE_DONORS.get(recipient_blood_type, ())
