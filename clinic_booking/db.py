# clinic_booking/db.py

from sqlmodel import SQLModel, Session, create_engine

from .config import DATABASE_URL

# check_same_thread is a SQLite-only connect arg
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=False,
    connect_args=connect_args,
)


def init_db():
    SQLModel.metadata.create_all(engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
