"""
Уникальный идентификатор единицы учёта.

Формат: IHUB/<финансовый год>/<код актива>/<место хранения>/<серийный номер>,
например IHUB/2024-25/LAP/STORAGE ROOM A/007.

Клиент строит предварительный идентификатор (preview) по следующему
значению глобального счётчика; окончательный серийный номер всегда
назначает сервер (см. services/serials.py). Значение сервера главнее.
"""
import re
from typing import List, Optional

from backend.core.config import settings

PLACEHOLDER = "--"
AUTO_MARKERS = ("AUTO", "???")

FINANCIAL_YEAR_RE = re.compile(r"^\d{4}-\d{2}$")
ASSET_CODE_RE = re.compile(r"^[A-Z]{1,3}-*$")

# Названия сегментов для сообщений об ошибках
SEGMENT_NAMES = {
    1: "financial year",
    2: "asset code",
    3: "location",
    4: "serial",
}


def asset_code(asset_name: Optional[str]) -> str:
    """Первые три буквы названия в верхнем регистре, недостающие дополняются '-'."""
    if not asset_name:
        return "---"
    letters = re.sub(r"[^a-zA-Z]", "", asset_name)
    return letters[:3].upper().ljust(3, "-")


def normalize_location(location: Optional[str]) -> str:
    if not location or not location.strip():
        return ""
    # '/' внутри сегмента сломал бы разбор идентификатора
    return location.strip().replace("/", "-").upper()


def format_serial(serial: int) -> str:
    """007, 042, 999, 1000: номера шире serial_width не обрезаются."""
    return str(serial).zfill(settings.serial_width)


def is_valid_financial_year(value: Optional[str]) -> bool:
    return bool(value) and bool(FINANCIAL_YEAR_RE.match(value))


def compose_unique_id(
    financial_year: Optional[str],
    asset_name: Optional[str],
    location: Optional[str],
    serial: Optional[int],
) -> str:
    segments = [
        settings.uid_prefix,
        (financial_year or "").strip() or PLACEHOLDER,
        asset_code(asset_name) if asset_name else PLACEHOLDER,
        normalize_location(location) or PLACEHOLDER,
        format_serial(serial) if serial is not None else PLACEHOLDER,
    ]
    return "/".join(segments)


def preview_unique_ids(
    financial_year: Optional[str],
    asset_name: Optional[str],
    location: Optional[str],
    next_serial: int,
    count: int = 1,
) -> List[str]:
    """Предварительные идентификаторы для добавления нескольких строк сразу."""
    return [
        compose_unique_id(financial_year, asset_name, location, next_serial + row)
        for row in range(count)
    ]


def is_auto(candidate: Optional[str]) -> bool:
    """Пустое значение или маркер AUTO/???: серийный номер назначает сервер."""
    if candidate is None or not candidate.strip():
        return True
    value = candidate.strip().upper()
    if value in AUTO_MARKERS:
        return True
    return value.split("/")[-1] in AUTO_MARKERS


def _is_placeholder(segment: str) -> bool:
    return segment == "" or set(segment) == {"-"}


def validate_unique_id(candidate: str, allow_auto_serial: bool = False) -> List[str]:
    """
    Проверяет идентификатор и возвращает список проблем (пустой: всё в порядке).

    Сегменты-заглушки ('--') перечисляются по названию компонента, чтобы
    форма могла показать, какое поле не заполнено.
    """
    parts = [p.strip() for p in candidate.strip().upper().split("/")]
    if len(parts) != 5:
        return [
            f"Invalid unique ID format. Must be: "
            f"{settings.uid_prefix}/year/asset code/location/serial"
        ]

    errors: List[str] = []
    if parts[0] != settings.uid_prefix:
        errors.append(f"Unique ID must start with {settings.uid_prefix}")

    serial_is_auto = allow_auto_serial and parts[4] in AUTO_MARKERS
    missing = [
        SEGMENT_NAMES[i]
        for i in range(1, 5)
        if _is_placeholder(parts[i]) and not (i == 4 and serial_is_auto)
    ]
    if missing:
        errors.append(f"Unique ID is missing: {', '.join(missing)}")

    if not _is_placeholder(parts[1]) and not FINANCIAL_YEAR_RE.match(parts[1]):
        errors.append("Financial year must look like YYYY-YY")
    if not _is_placeholder(parts[2]) and not ASSET_CODE_RE.match(parts[2]):
        errors.append("Asset code must be up to three letters")
    if not _is_placeholder(parts[4]) and not serial_is_auto:
        if not re.match(rf"^\d{{{settings.serial_width},}}$", parts[4]):
            errors.append(f"Serial must be at least {settings.serial_width} digits")
    return errors


def split_unique_id(unique_id: str) -> List[str]:
    return unique_id.split("/")


def replace_location(unique_id: str, location: Optional[str]) -> str:
    """Меняет только сегмент места хранения; год, код и серийный номер не трогаются."""
    parts = split_unique_id(unique_id)
    if len(parts) != 5:
        return unique_id
    parts[3] = normalize_location(location) or PLACEHOLDER
    return "/".join(parts)


def serial_of(unique_id: str) -> Optional[int]:
    parts = split_unique_id(unique_id)
    if len(parts) == 5 and parts[4].isdigit():
        return int(parts[4])
    return None
