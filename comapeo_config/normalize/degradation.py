"""
Recording of best-effort recoveries performed during normalization and
legacy conversion.
"""

import logging
from typing import List, Optional

from ..config import config
from ..exceptions import ConversionDegradedError
from ..models import ConversionDegraded


class DegradationLog:
    """
    Collects ConversionDegraded notices.

    In strict mode the first notice is raised as ConversionDegradedError
    instead of being recovered.
    """

    def __init__(self, strict: Optional[bool] = None):
        self.strict = config.strict_normalization if strict is None else strict
        self.notices: List[ConversionDegraded] = []

    def record(self, section: str, location: str, reason: str) -> None:
        notice = ConversionDegraded(section=section, location=location, reason=reason)
        if self.strict:
            raise ConversionDegradedError(notice)
        logging.warning(f"Conversion degraded: {notice}")
        self.notices.append(notice)

    def __len__(self) -> int:
        return len(self.notices)
