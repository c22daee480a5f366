"""Расчёт амортизации единицы учёта (линейный метод и метод уменьшаемого остатка)."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from backend.modules.assets.exceptions import ValidationFailed
from backend.modules.assets.models import DepreciationMethod, InventoryItem
from backend.modules.assets.schemas.inventory import DepreciationOut, DepreciationYear

CENT = Decimal("0.01")


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def wdv_rate(cost: Decimal, salvage: Decimal, life: int) -> Decimal:
    """
    Годовая ставка метода уменьшаемого остатка.

    Из ликвидационной стоимости: 1 - (salvage / cost) ** (1 / life).
    При нулевой ликвидационной стоимости формула вырождается в 100%,
    поэтому берётся двойная линейная ставка 2 / life.
    """
    if salvage > 0 and cost > 0:
        ratio = float(salvage / cost)
        return Decimal(str(1 - ratio ** (1 / life)))
    return min(Decimal(2) / Decimal(life), Decimal(1))


def build_schedule(
    cost: Decimal,
    salvage: Decimal,
    life: int,
    method: DepreciationMethod,
) -> List[DepreciationYear]:
    """Погодовой график; в последний год остаток равен ликвидационной стоимости."""
    schedule: List[DepreciationYear] = []
    opening = _money(cost)
    salvage = _money(salvage)
    if method == DepreciationMethod.STRAIGHT_LINE:
        annual = (cost - salvage) / Decimal(life)
    else:
        rate = wdv_rate(cost, salvage, life)

    for year in range(1, life + 1):
        if year == life:
            closing = salvage
        elif method == DepreciationMethod.STRAIGHT_LINE:
            closing = _money(opening - annual)
        else:
            closing = max(_money(opening - opening * rate), salvage)
        schedule.append(
            DepreciationYear(
                year=year,
                opening_value=opening,
                depreciation=_money(opening - closing),
                closing_value=closing,
            )
        )
        opening = closing
    return schedule


def _start_date(item: InventoryItem) -> Optional[date]:
    if item.date_of_invoice:
        return item.date_of_invoice
    if item.date_of_entry:
        return item.date_of_entry
    if item.created_at:
        return item.created_at.date()
    return None


def whole_years_between(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return max(years, 0)


def depreciation_for(item: InventoryItem, as_of: Optional[date] = None) -> DepreciationOut:
    """Текущая балансовая стоимость и полный график для единицы учёта."""
    if not item.useful_life_years:
        raise ValidationFailed("Useful life is not set for this item")

    cost = Decimal(item.total_cost or 0)
    salvage = Decimal(item.salvage_value or 0)
    if salvage > cost:
        raise ValidationFailed("Salvage value cannot exceed total cost")

    method = item.depreciation_method or DepreciationMethod.WRITTEN_DOWN_VALUE
    life = item.useful_life_years
    schedule = build_schedule(cost, salvage, life, method)

    start = _start_date(item)
    age = whole_years_between(start, as_of or date.today()) if start else 0
    if age == 0:
        book_value = _money(cost)
    else:
        book_value = schedule[min(age, life) - 1].closing_value

    return DepreciationOut(
        item_id=item.id,
        method=method,
        cost=_money(cost),
        salvage_value=_money(salvage),
        useful_life_years=life,
        age_years=age,
        current_book_value=book_value,
        accumulated_depreciation=_money(cost) - book_value,
        schedule=schedule,
    )
