#!/usr/bin/env python3
"""
Seed script to create demo accounts and a sample reservation
"""

import asyncio
from datetime import timedelta


async def seed_demo_data():
    """Seed demo data for development"""
    from app.database import create_store
    from app.models.change_log import ChangeAction
    from app.models.user import UserRole
    from app.repositories import ChangeLogRepository, ReservationRepository, UserRepository
    from app.storage import keys

    async with create_store() as store:
        users = UserRepository(store)

        # Check if demo admin already exists
        existing = await users.find_by_email("admin@demo.com")
        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        admin = await users.create(
            {
                "name": "Demo Admin",
                "email": "admin@demo.com",
                "password": "admin123",
                "phone": "+15551230001",
                "role": UserRole.ADMIN,
                "password_changed": True,
            }
        )
        print(f"Created admin: {admin.email} (ID: {admin.id})")

        # Employees start with their email as password
        employee = await users.create(
            {
                "name": "Demo Employee",
                "email": "staff@demo.com",
                "password": "staff@demo.com",
                "phone": "+15551230002",
                "role": UserRole.EMPLOYEE,
            }
        )
        print(f"Created employee: {employee.email} (ID: {employee.id})")

        guest = await users.create(
            {
                "name": "Demo Guest",
                "email": "guest@demo.com",
                "password": "guest123",
                "phone": "+15551230003",
                "role": UserRole.GUEST,
                "password_changed": True,
            }
        )
        print(f"Created guest: {guest.email} (ID: {guest.id})")

        # Sample reservation for tomorrow evening
        arrival = (keys.utcnow() + timedelta(days=1)).replace(
            hour=19, minute=0, second=0, microsecond=0
        )
        reservations = ReservationRepository(store)
        reservation = await reservations.create(
            {
                "guest_name": guest.name,
                "guest_contact_info": {"phone": guest.phone, "email": guest.email},
                "expected_arrival_time": arrival,
                "table_size": 4,
                "special_requests": "Window table if possible",
                "created_by": guest.id,
            }
        )
        await ChangeLogRepository(store).create(
            {
                "reservation_id": reservation.id,
                "action": ChangeAction.CREATE,
                "changed_by": guest.id,
                "snapshot": reservation.to_document(),
            }
        )
        print(f"Created reservation: {reservation.id} for {keys.format_timestamp(arrival)}")

        print(f"""
Demo data created successfully!

Users:
  Admin:
    Email: admin@demo.com
    Password: admin123

  Employee:
    Email: staff@demo.com
    Password: staff@demo.com (must be changed on first login)

  Guest:
    Email: guest@demo.com
    Password: guest123

Reservation: {reservation.id}
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
