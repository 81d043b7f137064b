from dataclasses import dataclass, field
from typing import Any

# ==================================================
# Compiled Output
# ==================================================

@dataclass
class CompiledQuery:
    """
    A statement rewritten for a positional ('?') driver.

    `parameter_names` records, in order, which named binding each '?' came from.
    """
    sql: str
    params: list[Any] = field(default_factory=list)
    parameter_names: list[str] = field(default_factory=list)
