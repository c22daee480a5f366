"""Глобальный счётчик серийных номеров для уникальных идентификаторов."""

import logging

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from backend.modules.assets.models import InventoryItem, SerialCounter

logger = logging.getLogger(__name__)

COUNTER_ID = "global"


def ensure_counter(db: Session) -> SerialCounter:
    """
    Создаёт строку счётчика, если её нет.

    Для записей, созданных до появления счётчика, стартовое значение
    равно числу единиц учёта, чтобы новые номера не повторяли старые.
    """
    counter = db.get(SerialCounter, COUNTER_ID)
    if counter is None:
        existing = db.scalar(select(func.count()).select_from(InventoryItem)) or 0
        counter = SerialCounter(id=COUNTER_ID, value=existing)
        db.add(counter)
        db.flush()
        logger.info("Serial counter initialised at %s", existing)
    return counter


def next_serial(db: Session) -> int:
    """
    Атомарно увеличивает счётчик и возвращает новое значение.

    Один UPDATE ... RETURNING в транзакции вызывающего: строка счётчика
    заблокирована до commit, поэтому параллельные создания получают разные
    номера, а откат создания откатывает и инкремент. Счётчик сначала
    подтягивается до числа единиц учёта, как и в предпросмотре.
    """
    item_count = select(func.count()).select_from(InventoryItem).scalar_subquery()
    stmt = (
        update(SerialCounter)
        .where(SerialCounter.id == COUNTER_ID)
        .values(
            value=case(
                (SerialCounter.value >= item_count, SerialCounter.value),
                else_=item_count,
            )
            + 1
        )
        .returning(SerialCounter.value)
        .execution_options(synchronize_session=False)
    )
    value = db.execute(stmt).scalar_one_or_none()
    if value is None:
        ensure_counter(db)
        value = db.execute(stmt).scalar_one()
    logger.debug("Serial %s assigned", value)
    return value


def current_sequence(db: Session) -> int:
    """Последний выданный номер (без изменения счётчика)."""
    counter_value = db.scalar(
        select(SerialCounter.value).where(SerialCounter.id == COUNTER_ID)
    )
    item_count = db.scalar(select(func.count()).select_from(InventoryItem)) or 0
    return max(counter_value or 0, item_count)


def peek_next_serial(db: Session) -> int:
    """Следующий номер для предварительного просмотра. Ничего не резервирует."""
    return current_sequence(db) + 1
