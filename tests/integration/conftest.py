from types import SimpleNamespace

import pytest
from pydantic import BaseModel, field_validator
from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from repokit.db.database import build_engine

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=True, unique=True),
)

Base = declarative_base()


class Author(Base):
    __tablename__ = "authors"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    posts = relationship("Post", back_populates="author")
    # No save-update cascade: only a deep save stores the profile
    profile = relationship("Profile", uselist=False, cascade="")


class Post(Base):
    __tablename__ = "posts"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author_id = Column(Integer, ForeignKey("authors.id"), nullable=True)

    author = relationship("Author", back_populates="posts")


class Profile(Base):
    __tablename__ = "profiles"
    id = Column(Integer, primary_key=True, autoincrement=True)
    bio = Column(String(255), nullable=False)
    author_id = Column(Integer, ForeignKey("authors.id"), nullable=True)


class UserCreate(BaseModel):
    name: str
    email: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None


class AuthorCreate(BaseModel):
    name: str


class AuthorUpdate(BaseModel):
    name: str | None = None


@pytest.fixture
def engine():
    eng = build_engine("sqlite+pysqlite:///:memory:")
    metadata.create_all(eng)
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def schema():
    return SimpleNamespace(
        metadata=metadata,
        users=users,
        Author=Author,
        Post=Post,
        Profile=Profile,
        UserCreate=UserCreate,
        UserUpdate=UserUpdate,
        AuthorCreate=AuthorCreate,
        AuthorUpdate=AuthorUpdate,
    )
