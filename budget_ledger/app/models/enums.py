"""
Role and ledger enumerations.

Defines the role types of the youth-council portal and the ledger entry kinds.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        MAIN_ADMIN: Municipal administrator with access to every barangay
        SK_CHAIRMAN: Chairperson of one barangay's youth council
        SK_SECRETARY: Secretary bound to one barangay
        KAGAWAD: Council member bound to one barangay
    """
    MAIN_ADMIN = "main_admin"
    SK_CHAIRMAN = "sk_chairman"
    SK_SECRETARY = "sk_secretary"
    KAGAWAD = "kagawad"


class TransactionType(str, enum.Enum):
    """Budget transaction type enumeration."""
    ADD = "add"  # Capital inflow, raises total and available
    DEDUCT = "deduct"  # Spending, lowers available only
