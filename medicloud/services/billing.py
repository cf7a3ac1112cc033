"""Pure billing arithmetic: dispensed quantities and bill totals."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional
import re

_LEADING_INT_RE = re.compile(r"^\s*(\d+)")
_ANY_INT_RE = re.compile(r"\d+")


def doses_per_day(pattern: Optional[str]) -> int:
    """Sum of a morning-afternoon-evening pattern such as ``1-0-1``.

    Parts without a leading number count as zero.
    """
    if not pattern:
        return 0

    total = 0
    for part in str(pattern).split("-"):
        match = _LEADING_INT_RE.match(part)
        if match:
            total += int(match.group(1))
    return total


def duration_in_days(duration: Optional[str]) -> int:
    """First integer in a free-text duration such as ``5 Days``; zero when there is none."""
    if not duration:
        return 0
    match = _ANY_INT_RE.search(str(duration))
    return int(match.group(0)) if match else 0


def calculate_quantity(dosage: Optional[str], duration: Optional[str]) -> int:
    """Units to dispense: doses per day times number of days."""
    return doses_per_day(dosage) * duration_in_days(duration)


@dataclass(frozen=True)
class BillLine:
    name: str
    dosage: str
    duration: str
    rate: float
    quantity: int

    @property
    def total(self) -> float:
        return round(self.rate * self.quantity, 2)


@dataclass(frozen=True)
class BillSummary:
    lines: List[BillLine] = field(default_factory=list)
    consultation_fee: float = 0.0

    @property
    def medicine_cost(self) -> float:
        return round(sum(line.total for line in self.lines), 2)

    @property
    def total_amount(self) -> float:
        return round(self.consultation_fee + self.medicine_cost, 2)


def build_bill_lines(medicines: Iterable[Mapping], price_lookup: Mapping[str, float]) -> List[BillLine]:
    """Price each prescribed medicine; medicines missing from the catalogue are billed at zero."""
    lines = []
    for medicine in medicines or []:
        name = str(medicine.get("name") or "").strip()
        dosage = str(medicine.get("dosage") or "")
        duration = str(medicine.get("duration") or "")
        lines.append(
            BillLine(
                name=name,
                dosage=dosage,
                duration=duration,
                rate=float(price_lookup.get(name, 0) or 0),
                quantity=calculate_quantity(dosage, duration),
            )
        )
    return lines


def summarize_bill(lines: List[BillLine], consultation_fee: Optional[float] = None) -> BillSummary:
    return BillSummary(lines=list(lines), consultation_fee=float(consultation_fee or 0))


def price_index(rows: Iterable) -> Dict[str, float]:
    """Map of medicine name to price from catalogue rows."""
    return {row.name: float(row.price) for row in rows}
