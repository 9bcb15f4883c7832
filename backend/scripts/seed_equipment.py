"""Seed demo equipment and teachers for local development."""
from __future__ import annotations

import asyncio

from sqlalchemy import select

from school_equipment.db.session import get_sessionmaker
from school_equipment.models.equipment import Equipment
from school_equipment.models.teacher import Teacher

DEFAULT_EQUIPMENT = [
    ("Projector 1", "Library"),
    ("Projector 2", "Room 12"),
    ("Laptop cart A", "Computer lab"),
    ("Laptop cart B", "Computer lab"),
    ("Speaker kit", "Music room"),
]

DEFAULT_TEACHERS = [
    ("Ana", "Rojas", "1° A", "Mathematics"),
    ("Luis", "Pérez", "2° B", "History"),
    ("Marta", "Soto", "3° A", "Biology"),
]


async def seed_equipment() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        existing_equipment = set(
            (await session.execute(select(Equipment.name))).scalars().all()
        )
        existing_teachers = set(
            (
                await session.execute(select(Teacher.first_name, Teacher.last_name))
            ).all()
        )
        created = 0
        for name, location in DEFAULT_EQUIPMENT:
            if name not in existing_equipment:
                session.add(Equipment(name=name, location=location))
                created += 1
        for first_name, last_name, course, subject in DEFAULT_TEACHERS:
            if (first_name, last_name) not in existing_teachers:
                session.add(
                    Teacher(
                        first_name=first_name,
                        last_name=last_name,
                        course=course,
                        subject=subject,
                    )
                )
                created += 1
        if created:
            await session.commit()
        print(f"Seeded {created} record(s).")


def main() -> None:
    asyncio.run(seed_equipment())


if __name__ == "__main__":
    main()
