import re
from typing import Any, Dict, List, Optional

from crucible.app.models.enums import DISCIPLINES

WALLET_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")


def is_valid_wallet(wallet: Any) -> bool:
    return isinstance(wallet, str) and WALLET_PATTERN.match(wallet) is not None


def normalize_discipline(discipline: str) -> Optional[str]:
    """Lowercased discipline if it is one of the twelve, else None."""
    value = discipline.lower()
    return value if value in DISCIPLINES else None


def normalize_name(name: str) -> str:
    """
    Identity key for free-text author and rater names.
    Used at every comparison site so "Ada" and "ada " are the same person.
    """
    return name.strip().casefold()


def missing_fields(fields: Dict[str, Any]) -> List[str]:
    """Names whose value is absent or empty, in the order given."""
    return [name for name, value in fields.items() if value is None or value == ""]


def is_valid_score(score: Any) -> bool:
    # bool is an int subclass; a JSON true is not a score
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return False
    return 1 <= score <= 5
