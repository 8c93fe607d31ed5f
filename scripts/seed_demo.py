"""Seed a demo clinic with staff and a patient, and print access tokens."""

import asyncio
from datetime import timedelta
from uuid import uuid4

from sqlalchemy import insert

from clinic_scheduler.core.security import create_access_token
from clinic_scheduler.database import AsyncSessionLocal, engine
from clinic_scheduler.models import clinics, patients, user_clinics, users
from clinic_scheduler.schemas.clinics import ClinicRole

STAFF = [
    ("Ana Torres", "ana.torres@demo.clinic", None, ClinicRole.ADMIN),
    ("Luis Herrera", "luis.herrera@demo.clinic", "Cardiology", ClinicRole.DOCTOR),
    ("Marta Ruiz", "marta.ruiz@demo.clinic", None, ClinicRole.RECEPTIONIST),
]


async def seed() -> None:
    """Insert demo rows and print one bearer token per staff member."""
    clinic_id = uuid4()

    async with AsyncSessionLocal() as db:
        await db.execute(insert(clinics).values(id=clinic_id, name="Demo Clinic", slug="demo-clinic"))

        for name, email, specialty, role in STAFF:
            user_id = uuid4()
            await db.execute(
                insert(users).values(id=user_id, name=name, email=email, specialty=specialty)
            )
            await db.execute(
                insert(user_clinics).values(user_id=user_id, clinic_id=clinic_id, role=role.value)
            )
            token = create_access_token({"sub": str(user_id)}, expires_delta=timedelta(days=7))
            print(f"{role.value:<13} {name:<14} {token}")

        patient_id = uuid4()
        await db.execute(
            insert(patients).values(
                id=patient_id,
                clinic_id=clinic_id,
                first_name="Carlos",
                last_name="Mendoza",
                phone="+525512345678",
            )
        )
        await db.commit()

    await engine.dispose()
    print(f"clinic_id={clinic_id} patient_id={patient_id}")


if __name__ == "__main__":
    asyncio.run(seed())
