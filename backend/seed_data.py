"""Seed database with demo data."""
from maintrack.database import Base, SessionLocal, engine
from maintrack.models import InventoryItem, Machine, MaintenanceRecord, Site, User
from maintrack.services.maintenance_rules import now_utc, start_of_day
from datetime import timedelta
import uuid


def seed():
    """Create tables and seed demo data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        site = Site(
            id=uuid.UUID('00000000-0000-0000-0000-000000000001'),
            name="Main Plant",
            code="MAIN",
            city="Springfield",
        )
        db.add(site)
        db.flush()

        users_data = [
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000101'),
                'name': 'Alex Admin',
                'email': 'admin@example.com',
                'role': 'admin',
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000102'),
                'name': 'Morgan Manager',
                'email': 'manager@example.com',
                'role': 'manager',
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000103'),
                'name': 'Sam Technician',
                'email': 'sam@example.com',
                'role': 'operator',
            },
        ]
        users = [User(**data) for data in users_data]
        db.add_all(users)

        machines = [
            Machine(
                id=uuid.UUID('00000000-0000-0000-0000-000000000201'),
                site_id=site.id,
                name='Compressor #1',
                model='GA-37',
                serial_number='CMP-0001',
            ),
            Machine(
                id=uuid.UUID('00000000-0000-0000-0000-000000000202'),
                site_id=site.id,
                name='CNC Lathe',
                model='NLX-2500',
                serial_number='CNC-0002',
            ),
        ]
        db.add_all(machines)

        items_data = [
            {'name': 'Air Filter', 'category': 'filters', 'sku': 'FLT-AIR', 'current_stock': 12, 'min_stock': 4},
            {'name': 'Compressor Oil 5L', 'category': 'lubricants', 'sku': 'OIL-5L', 'current_stock': 3, 'min_stock': 3},
            {'name': 'Drive Belt', 'category': 'belts', 'sku': 'BLT-DRV', 'current_stock': 0, 'min_stock': 2},
        ]
        db.add_all([InventoryItem(site_id=site.id, **data) for data in items_data])
        db.flush()

        today = start_of_day(now_utc())
        db.add_all([
            MaintenanceRecord(
                title='Weekly compressor inspection',
                description='Check pressure, drain condensate, inspect belts',
                machine_id=machines[0].id,
                site_id=site.id,
                priority='medium',
                scheduled_date=today - timedelta(days=7),
                assigned_to=users[2].name,
                is_recurring=True,
                recurrence_pattern='weekly',
                is_template=True,
            ),
            MaintenanceRecord(
                title='Lathe spindle lubrication',
                machine_id=machines[1].id,
                site_id=site.id,
                priority='high',
                scheduled_date=today + timedelta(days=2),
                due_date=today + timedelta(days=9),
                assigned_to=users[2].name,
                is_recurring=True,
                recurrence_pattern='monthly',
            ),
        ])

        db.commit()
        print("✅ Database seeded successfully!")
        print("\nDemo users:")
        for user in users:
            print(f"  {user.name} ({user.role})")

    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
