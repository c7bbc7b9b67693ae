from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, insert, select, union, update
from sqlalchemy.orm import Session

from accessmap.models.places import PlaceAggregate
from accessmap.models.reviews import AccessibilityReview


def _dialect_insert(db: Session):
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as dialect_insert
    elif dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as dialect_insert
    else:
        return None
    return dialect_insert


def get_place_aggregate(db: Session, place_id: str) -> PlaceAggregate | None:
    return db.get(PlaceAggregate, place_id, populate_existing=True)


def get_place_aggregates(db: Session, place_ids: list[str]) -> dict[str, PlaceAggregate]:
    if not place_ids:
        return {}
    rows = db.scalars(select(PlaceAggregate).where(PlaceAggregate.id.in_(place_ids))).all()
    return {p.id: p for p in rows}


def increment_place_aggregate(
    db: Session,
    *,
    place_id: str,
    place_name: str | None,
    physical: int,
    sensory: int,
    cognitive: int,
) -> None:
    """Add one review's ratings to a place aggregate, creating it if absent.

    Runs as a single upsert statement, so concurrent writers never read a
    stale aggregate. Does not commit.
    """
    values = {
        "id": place_id,
        "name": place_name or None,
        "physical_total": physical,
        "sensory_total": sensory,
        "cognitive_total": cognitive,
        "review_count": 1,
        "last_updated": datetime.utcnow(),
    }

    dialect_insert = _dialect_insert(db)
    if dialect_insert is None:
        _increment_without_upsert(db, values)
        return

    stmt = dialect_insert(PlaceAggregate).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={
            "name": func.coalesce(PlaceAggregate.name, stmt.excluded.name),
            "physical_total": PlaceAggregate.physical_total + stmt.excluded.physical_total,
            "sensory_total": PlaceAggregate.sensory_total + stmt.excluded.sensory_total,
            "cognitive_total": PlaceAggregate.cognitive_total + stmt.excluded.cognitive_total,
            "review_count": PlaceAggregate.review_count + 1,
            "last_updated": stmt.excluded.last_updated,
        },
    )
    db.execute(stmt)


def _increment_without_upsert(db: Session, values: dict) -> None:
    stmt = (
        update(PlaceAggregate)
        .where(PlaceAggregate.id == values["id"])
        .values(
            physical_total=PlaceAggregate.physical_total + values["physical_total"],
            sensory_total=PlaceAggregate.sensory_total + values["sensory_total"],
            cognitive_total=PlaceAggregate.cognitive_total + values["cognitive_total"],
            review_count=PlaceAggregate.review_count + 1,
            last_updated=values["last_updated"],
        )
        .execution_options(synchronize_session=False)
    )
    res = db.execute(stmt)
    if not res.rowcount:
        db.execute(insert(PlaceAggregate).values(**values))


def overwrite_place_aggregate_from_reviews(db: Session, *, place_id: str) -> None:
    """Replace a place aggregate with totals recounted from its reviews.

    The recount happens inside the write statement itself. Does not commit.
    """
    of_place = AccessibilityReview.place_id == place_id

    def _total(column):
        return select(func.coalesce(func.sum(column), 0)).where(of_place).scalar_subquery()

    values = {
        "id": place_id,
        "name": (
            select(AccessibilityReview.place_name)
            .where(of_place)
            .order_by(AccessibilityReview.created_at.desc(), AccessibilityReview.id.desc())
            .limit(1)
            .scalar_subquery()
        ),
        "physical_total": _total(AccessibilityReview.physical_rating),
        "sensory_total": _total(AccessibilityReview.sensory_rating),
        "cognitive_total": _total(AccessibilityReview.cognitive_rating),
        "review_count": select(func.count(AccessibilityReview.id)).where(of_place).scalar_subquery(),
        "last_updated": datetime.utcnow(),
    }

    dialect_insert = _dialect_insert(db)
    if dialect_insert is None:
        res = db.execute(
            update(PlaceAggregate)
            .where(PlaceAggregate.id == place_id)
            .values(**{k: v for k, v in values.items() if k != "id"})
            .execution_options(synchronize_session=False)
        )
        if not res.rowcount:
            db.execute(insert(PlaceAggregate).values(**values))
        return

    stmt = dialect_insert(PlaceAggregate).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["id"],
        set_={
            "name": func.coalesce(stmt.excluded.name, PlaceAggregate.name),
            "physical_total": stmt.excluded.physical_total,
            "sensory_total": stmt.excluded.sensory_total,
            "cognitive_total": stmt.excluded.cognitive_total,
            "review_count": stmt.excluded.review_count,
            "last_updated": stmt.excluded.last_updated,
        },
    )
    db.execute(stmt)


def count_place_reviews(db: Session, place_id: str) -> int:
    stmt = select(func.count(AccessibilityReview.id)).where(AccessibilityReview.place_id == place_id)
    return int(db.scalar(stmt) or 0)


def get_reviewed_place_ids(db: Session) -> list[str]:
    stmt = union(select(PlaceAggregate.id), select(AccessibilityReview.place_id))
    return sorted(str(pid) for pid in db.scalars(stmt).all())
