import asyncio
import os
import sys
import uuid
from datetime import time

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.core.db import SessionLocal, init_models
from app.modules.availability.domain import Weekday
from app.modules.availability.repository import SqlAvailabilityStore
from app.modules.availability.service import ScheduleStore

WORKING_DAYS = [Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU, Weekday.FRI]
TIME_BLOCKS = [
    (time(9, 0), time(13, 0)),   # morning
    (time(14, 0), time(17, 0)),  # afternoon
]

async def main(doctor_id: uuid.UUID):
    """
    Seeds the default Monday-Friday schedule for one doctor.
    """
    print(f"Seeding default schedule for doctor {doctor_id}...")
    await init_models()

    async with SessionLocal() as db:
        store = ScheduleStore(SqlAvailabilityStore(db))
        failed = 0
        for start, end in TIME_BLOCKS:
            result = await store.create_week_schedule(doctor_id, WORKING_DAYS, start, end)
            print(f"  - {start:%H:%M}-{end:%H:%M}: {result.succeeded} day(s) saved, {result.failed} failed")
            for err in result.errors:
                print(f"    ! {err}")
            failed += result.failed

    print("Schedule seeding complete!" if not failed else f"Schedule seeding finished with {failed} failure(s).")
    return 1 if failed else 0

if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python scripts/seed_schedule.py DOCTOR_ID")
        sys.exit(2)
    try:
        doctor = uuid.UUID(sys.argv[1])
    except ValueError:
        print(f"not a UUID: {sys.argv[1]!r}")
        sys.exit(2)
    sys.exit(asyncio.run(main(doctor)))
