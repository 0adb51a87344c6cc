import os
from dotenv import load_dotenv
from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./collegeconnect.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_user_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_user_schema() -> None:
    """Bring a users table created by an older release up to the lifecycle columns."""
    global _user_schema_checked

    if _user_schema_checked:
        return

    with _schema_lock:
        if _user_schema_checked:
            return

        inspector = inspect(engine)

        if 'users' not in inspector.get_table_names():
            _user_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('users')}
        migration_steps = [
            ('admission_year', 'ALTER TABLE users ADD COLUMN admission_year INTEGER'),
            ('graduation_year', 'ALTER TABLE users ADD COLUMN graduation_year INTEGER'),
            ('year_of_graduation', 'ALTER TABLE users ADD COLUMN year_of_graduation VARCHAR'),
            ('current_year', 'ALTER TABLE users ADD COLUMN current_year INTEGER DEFAULT 1'),
            ('graduated', 'ALTER TABLE users ADD COLUMN graduated BOOLEAN DEFAULT FALSE'),
            ('role_last_updated', 'ALTER TABLE users ADD COLUMN role_last_updated TIMESTAMP'),
        ]

        with engine.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_role_status ON users(role, verification_status)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_graduation_year ON users(graduation_year)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_users_admission_year ON users(admission_year)')
            )

        _user_schema_checked = True
