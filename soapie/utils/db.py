import os
from datetime import date

import aiosqlite

from soapie.config.logger import get_logger
from soapie.config.settings import settings
from soapie.models.record import PatientInfo

logger = get_logger(__name__)


def _db_path(db_path: str | None) -> str:
    return db_path or settings.DB_PATH


def calculate_age(dob: str | None, today: date | None = None) -> str:
    """Whole years between an ISO ``dob`` and ``today``; "" when unknown."""
    if not dob:
        return ""
    try:
        born = date.fromisoformat(str(dob)[:10])
    except ValueError:
        return ""
    today = today or date.today()
    years = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
    return str(years) if years >= 0 else ""


def dob_from_age(age: str | None, today: date | None = None) -> str | None:
    """January 1st of ``current_year - age`` for a plausible numeric age."""
    try:
        years = int(str(age or "").strip())
    except ValueError:
        return None
    if not 0 < years < 150:
        return None
    today = today or date.today()
    return date(today.year - years, 1, 1).isoformat()


async def init_db(db_path: str | None = None):
    path = _db_path(db_path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    async with aiosqlite.connect(path) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS patients (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                full_name TEXT NOT NULL,
                gender TEXT,
                dob TEXT,
                room_number TEXT,
                unit TEXT,
                created_at TEXT DEFAULT (datetime('now'))
            )
        """)
        await db.commit()


async def get_patient(patient_id: int, db_path: str | None = None) -> PatientInfo | None:
    async with aiosqlite.connect(_db_path(db_path)) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute("SELECT * FROM patients WHERE id = ?", (patient_id,))
        row = await cursor.fetchone()
    if row is None:
        return None
    return PatientInfo(
        full_name=row["full_name"] or "",
        age=calculate_age(row["dob"]),
        gender=row["gender"] or "",
        room_number=row["room_number"] or "",
        unit=row["unit"] or "",
    )


async def create_patient(patient: PatientInfo, db_path: str | None = None) -> int:
    async with aiosqlite.connect(_db_path(db_path)) as db:
        cursor = await db.execute(
            "INSERT INTO patients (full_name, gender, dob, room_number, unit) VALUES (?, ?, ?, ?, ?)",
            (
                patient.full_name,
                patient.gender or None,
                dob_from_age(patient.age),
                patient.room_number or None,
                patient.unit or None,
            ),
        )
        await db.commit()
        patient_id = cursor.lastrowid
    logger.info("[db] patient created id=%s", patient_id)
    return int(patient_id)


async def update_patient(patient_id: int, patient: PatientInfo, db_path: str | None = None) -> bool:
    """Write a merged record back; a stored dob is never replaced by an age estimate."""
    async with aiosqlite.connect(_db_path(db_path)) as db:
        cursor = await db.execute(
            """
            UPDATE patients
               SET full_name = ?, gender = ?, room_number = ?, unit = ?,
                   dob = COALESCE(dob, ?)
             WHERE id = ?
            """,
            (
                patient.full_name,
                patient.gender or None,
                patient.room_number or None,
                patient.unit or None,
                dob_from_age(patient.age),
                patient_id,
            ),
        )
        await db.commit()
        return cursor.rowcount > 0
