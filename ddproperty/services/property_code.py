import re
from typing import Optional

PROPERTY_CODE_PREFIX = "DP"
PROPERTY_CODE_DIGITS = 5

_CODE_PATTERN = re.compile(rf"^{PROPERTY_CODE_PREFIX}(\d+)$")


def format_property_code(number: int) -> str:
    return f"{PROPERTY_CODE_PREFIX}{number:0{PROPERTY_CODE_DIGITS}d}"


def parse_property_code(code: str) -> int:
    match = _CODE_PATTERN.match(code or "")
    if not match:
        raise ValueError(f"Not a property code: {code!r}")
    return int(match.group(1))


def is_property_code(code: Optional[str]) -> bool:
    return bool(code) and _CODE_PATTERN.match(code) is not None


def generate_next_code(latest: Optional[str]) -> str:
    """Return the code following ``latest``.

    ``None`` -> ``DP00001``, ``DP00042`` -> ``DP00043``. Codes grow past five
    digits instead of wrapping (``DP99999`` -> ``DP100000``).
    """
    if not latest:
        return format_property_code(1)
    return format_property_code(parse_property_code(latest) + 1)
