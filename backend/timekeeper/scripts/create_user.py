import sys

from timekeeper.core.security import create_access_token
from timekeeper.database.base import Base
from timekeeper.database.session import SessionLocal, engine
from timekeeper.models.user import User
import timekeeper.main  # noqa: F401  registers every model


def create_user(name: str, email: str, role: str = "employee"):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user:
            print("User already exists")
        else:
            user = User(name=name, email=email, role=role)
            db.add(user)
            db.commit()
            db.refresh(user)
            print(f"{role.capitalize()} created successfully")

        print(create_access_token({"sub": str(user.id)}))
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: python -m timekeeper.scripts.create_user NAME EMAIL [admin|manager|employee]")
        sys.exit(1)
    create_user(*sys.argv[1:4])
