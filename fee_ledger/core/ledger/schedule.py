import logging
from decimal import Decimal
from typing import Dict, Iterable, Optional

from .months import to_decimal
from .records import ClassRecord

logger = logging.getLogger(__name__)


class FeeSchedule:
    """Class name -> monthly fee lookup, built once per aggregation pass."""

    def __init__(self, fees_by_class: Dict[str, Decimal]) -> None:
        self._fees = dict(fees_by_class)

    @classmethod
    def from_classes(cls, classes: Optional[Iterable[ClassRecord]]) -> "FeeSchedule":
        fees: Dict[str, Decimal] = {}
        for c in classes or []:
            # Last definition wins when the store holds duplicate class names.
            fees[c.class_name] = to_decimal(c.school_fees)
        return cls(fees)

    def resolve(self, class_name: Optional[str]) -> Decimal:
        fee = self._fees.get(class_name or "")
        if fee is None:
            logger.debug("No fee configured for class %r, using 0", class_name)
            return Decimal("0")
        return fee

    def __contains__(self, class_name: object) -> bool:
        return class_name in self._fees

    def __len__(self) -> int:
        return len(self._fees)


def resolve_fee(class_name: Optional[str], classes: Optional[Iterable[ClassRecord]]) -> Decimal:
    return FeeSchedule.from_classes(classes).resolve(class_name)
