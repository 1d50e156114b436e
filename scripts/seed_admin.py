import os
from datetime import date

from hris.core.init_system import init_system_data
from hris.database import SessionLocal, init_db
from hris.models.employee import Employee, EmployeeRole, EmployeeStatus, EmploymentType
from hris.services import auth as auth_service


def seed():
    init_db()
    db = SessionLocal()
    try:
        # 1. Default leave catalogue
        created = init_system_data(db)
        if created:
            print(f"Created {created} default leave types")

        # 2. Check if admin exists
        admin_email = os.getenv("SEED_ADMIN_EMAIL", "admin@plugo.co").lower()
        password = os.getenv("SEED_ADMIN_PASSWORD") or auth_service.generate_temporary_password()
        admin = db.query(Employee).filter(Employee.email == admin_email).first()

        if not admin:
            admin = Employee(
                nik=os.getenv("SEED_ADMIN_NIK", "ADM0001"),
                full_name="System Administrator",
                email=admin_email,
                password_hash=auth_service.get_password_hash(password),
                role=EmployeeRole.ADMIN,
                employment_type=EmploymentType.PERMANENT,
                status=EmployeeStatus.ACTIVE,
                start_date=date.today(),
            )
            db.add(admin)
            db.commit()
            print(f"Admin {admin_email} created with password '{password}'")
        else:
            admin.password_hash = auth_service.get_password_hash(password)
            admin.password_changed = False
            admin.status = EmployeeStatus.ACTIVE
            db.commit()
            print(f"Admin {admin_email} already exists. Password reset to '{password}'")

    finally:
        db.close()


if __name__ == "__main__":
    seed()
