"""Import colleges (reference data) from a CSV export."""

import csv
import logging
from typing import Callable, Dict, Iterator, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.constants.constants import COLLEGE_CSV_ALIASES, COLLEGE_IMPORT_BATCH_SIZE, COLLEGE_REQUIRED_FIELDS
from app.models.reference import College

logger = logging.getLogger(__name__)


class CollegeCsvReadResult:
    def __init__(self):
        self.records: List[Dict[str, Optional[str]]] = []
        self.rows_read = 0
        self.skipped_incomplete = 0


class ImportSummary:
    def __init__(self, rows_read: int, skipped_incomplete: int, inserted: int,
                 total_colleges: int, total_states: int, total_districts: int):
        self.rows_read = rows_read
        self.skipped_incomplete = skipped_incomplete
        self.inserted = inserted
        self.total_colleges = total_colleges
        self.total_states = total_states
        self.total_districts = total_districts

    @property
    def skipped_duplicates(self) -> int:
        return self.rows_read - self.skipped_incomplete - self.inserted


def normalize_row(row: Dict[str, str]) -> Dict[str, Optional[str]]:
    """Map one CSV row onto the college record shape using the header aliases."""
    record = {}
    for field, aliases in COLLEGE_CSV_ALIASES.items():
        value = None
        for alias in aliases:
            raw = row.get(alias)
            if raw is not None and raw.strip():
                value = raw.strip()
                break
        record[field] = value
    return record


def is_complete(record: Dict[str, Optional[str]]) -> bool:
    return all(record.get(field) for field in COLLEGE_REQUIRED_FIELDS)


def iter_college_rows(csv_path: str) -> Iterator[Dict[str, str]]:
    with open(csv_path, newline="", encoding="utf-8-sig") as handle:
        for row in csv.DictReader(handle):
            yield row


def read_college_csv(csv_path: str) -> CollegeCsvReadResult:
    """Stream the CSV and keep only fully populated records."""
    result = CollegeCsvReadResult()
    for row in iter_college_rows(csv_path):
        result.rows_read += 1
        record = normalize_row(row)
        if is_complete(record):
            result.records.append(record)
        else:
            result.skipped_incomplete += 1
    return result


def _insert_ignoring_duplicates(db: AsyncSession, batch: List[Dict]):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(College).values(batch)
    elif dialect == "sqlite":
        stmt = sqlite_insert(College).values(batch)
    else:
        raise RuntimeError(f"Unsupported database dialect for college import: {dialect}")
    return stmt.on_conflict_do_nothing(index_elements=["name", "district", "state"])


async def clear_colleges(db: AsyncSession) -> int:
    result = await db.execute(delete(College))
    return result.rowcount or 0


async def insert_colleges(
    db: AsyncSession,
    records: List[Dict[str, Optional[str]]],
    batch_size: int = COLLEGE_IMPORT_BATCH_SIZE,
    report: Callable[[str], None] = print,
) -> int:
    """Insert records in fixed-size batches, skipping duplicates. Returns rows inserted."""
    inserted = 0
    total_batches = (len(records) + batch_size - 1) // batch_size
    for start in range(0, len(records), batch_size):
        batch = records[start:start + batch_size]
        result = await db.execute(_insert_ignoring_duplicates(db, batch))
        inserted += max(result.rowcount or 0, 0)
        report(f"✅ Inserted batch {start // batch_size + 1}/{total_batches}")
    return inserted


async def college_statistics(db: AsyncSession) -> Dict[str, int]:
    total = (await db.execute(select(func.count()).select_from(College))).scalar_one()
    states = (await db.execute(select(func.count(func.distinct(College.state))))).scalar_one()
    districts = (await db.execute(select(func.count(func.distinct(College.district))))).scalar_one()
    return {"colleges": total, "states": states, "districts": districts}


async def import_colleges(
    db: AsyncSession,
    csv_path: str,
    replace: bool = False,
    batch_size: int = COLLEGE_IMPORT_BATCH_SIZE,
    report: Callable[[str], None] = print,
) -> ImportSummary:
    """Read ``csv_path`` and load it into the colleges table."""
    if replace:
        report("🗑️ Clearing existing college data...")
        cleared = await clear_colleges(db)
        report(f"✅ Cleared {cleared} existing colleges")

    report(f"📖 Reading CSV file: {csv_path}")
    read = read_college_csv(csv_path)
    report(f"📊 Found {len(read.records)} complete colleges in CSV ({read.skipped_incomplete} incomplete rows skipped)")

    inserted = await insert_colleges(db, read.records, batch_size=batch_size, report=report)
    await db.flush()

    stats = await college_statistics(db)
    logger.info(f"College import finished: {inserted} inserted, {stats}")
    return ImportSummary(
        rows_read=read.rows_read,
        skipped_incomplete=read.skipped_incomplete,
        inserted=inserted,
        total_colleges=stats["colleges"],
        total_states=stats["states"],
        total_districts=stats["districts"],
    )
