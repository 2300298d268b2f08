"""
Intermediate models produced between reconciliation and the canonical model.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class ConfigDraft:
    """
    A configuration document reassembled from an archive, before shape
    normalization. Section values keep whatever shape they were found in.
    """

    metadata: Dict[str, Any] = field(default_factory=dict)
    fields: Any = field(default_factory=list)
    presets: Any = field(default_factory=list)
    translations: Any = field(default_factory=dict)
    icons: Any = field(default_factory=dict)

    def section(self, kind: str) -> Any:
        return getattr(self, kind)


@dataclass(frozen=True)
class ConversionDegraded:
    """
    A recorded recovery: an unexpected shape was replaced with a default.
    """

    section: str
    location: str
    reason: str

    def __str__(self) -> str:
        return f"{self.section}:{self.location}: {self.reason}"
