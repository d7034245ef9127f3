"""One-time DB setup: create tables and seed demo accounts."""
from quizmaster.db.session import Base, get_engine, session_scope
from quizmaster.db.models import RoleEnum, User
from quizmaster.core.security import hash_password

DEMO_USERS = [
    ("professor@example.com", "professor123", "Demo Professor", RoleEnum.PROFESSOR),
    ("student@example.com", "student123", "Demo Student", RoleEnum.STUDENT),
]

# 1. Create all tables
Base.metadata.create_all(bind=get_engine())
print("✅ All tables created")

# 2. Demo accounts
with session_scope() as db:
    for email, password, full_name, role in DEMO_USERS:
        if db.query(User).filter(User.email == email).first():
            print(f"  {role.value.title()} {email} already exists")
            continue
        db.add(
            User(
                email=email,
                hashed_password=hash_password(password),
                full_name=full_name,
                role=role,
            )
        )
        print(f"✅ Created {role.value}: {email} / {password}")

print("\n🎉 Database is ready to use!")
for email, password, _, role in DEMO_USERS:
    print(f"   {role.value.title():<10} {email} / {password}")
