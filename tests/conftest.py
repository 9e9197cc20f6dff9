# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-alert-engine")

from tracker_alerts.core.security import create_access_token
from tracker_alerts.db.session import Base
from tracker_alerts.db.session import get_db as app_get_session
from tracker_alerts.main import app as fastapi_app
from tracker_alerts.models import (
    EMAIL_PREFERENCE,
    Folder,
    IssueType,
    Preference,
    Project,
    ProjectAccess,
    ProjectRight,
    User,
    UserAccess,
    View,
)
from tracker_alerts.services.access import Principal

TEST_DB_URL = "sqlite://"


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    # A fresh in-memory database per test; the alert store commits on its own.
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI, db_session: Session) -> Iterator[TestClient]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(app_get_session, None)


def make_user(
    db: Session,
    login: str,
    *,
    access: UserAccess = UserAccess.NORMAL,
    email: str | None = None,
) -> User:
    """Persist a user, optionally with an email preference."""
    user = User(user_login=login, user_name=login.capitalize(), user_access=int(access))
    db.add(user)
    db.flush()
    if email is not None:
        db.add(Preference(user_id=user.user_id, pref_key=EMAIL_PREFERENCE, pref_value=email))
    db.commit()
    return user


def grant(db: Session, user: User, project: Project,
          level: ProjectAccess = ProjectAccess.MEMBER) -> None:
    """Give ``user`` an explicit right in ``project``."""
    db.add(ProjectRight(project_id=project.project_id, user_id=user.user_id,
                        project_access=int(level)))
    db.commit()


def make_folder(db: Session, project: Project, issue_type: IssueType, name: str,
                stamp: int | None = None) -> Folder:
    folder = Folder(project_id=project.project_id, type_id=issue_type.type_id,
                    folder_name=name, stamp_id=stamp)
    db.add(folder)
    db.commit()
    return folder


def set_stamp(db: Session, folder: Folder, stamp: int) -> None:
    """Force a folder's stamp, as if a change had been recorded at ``stamp``."""
    folder.stamp_id = stamp
    db.commit()


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    return make_user(db_session, "admin", access=UserAccess.ADMINISTRATOR,
                     email="admin@example.com")


@pytest.fixture()
def member_user(db_session: Session, project: Project) -> User:
    """A normal user with explicit access to ``project`` and email enabled."""
    user = make_user(db_session, "alice", email="alice@example.com")
    grant(db_session, user, project)
    return user


@pytest.fixture()
def second_member(db_session: Session, project: Project) -> User:
    user = make_user(db_session, "bob", email="bob@example.com")
    grant(db_session, user, project)
    return user


@pytest.fixture()
def outsider_user(db_session: Session) -> User:
    """A normal user with email enabled but no project rights."""
    return make_user(db_session, "mallory", email="mallory@example.com")


@pytest.fixture()
def admin(admin_user: User) -> Principal:
    return Principal.for_user(admin_user)


@pytest.fixture()
def member(member_user: User) -> Principal:
    return Principal.for_user(member_user)


@pytest.fixture()
def issue_type(db_session: Session) -> IssueType:
    issue_type = IssueType(type_name="Bugs")
    db_session.add(issue_type)
    db_session.commit()
    return issue_type


@pytest.fixture()
def other_type(db_session: Session) -> IssueType:
    issue_type = IssueType(type_name="Tasks")
    db_session.add(issue_type)
    db_session.commit()
    return issue_type


@pytest.fixture()
def project(db_session: Session) -> Project:
    project = Project(project_name="Apollo", is_archived=False, is_public=False)
    db_session.add(project)
    db_session.commit()
    return project


@pytest.fixture()
def other_project(db_session: Session) -> Project:
    project = Project(project_name="Borealis", is_archived=False, is_public=False)
    db_session.add(project)
    db_session.commit()
    return project


@pytest.fixture()
def folder(db_session: Session, project: Project, issue_type: IssueType) -> Folder:
    return make_folder(db_session, project, issue_type, "Frontend", stamp=100)


@pytest.fixture()
def sibling_folder(db_session: Session, project: Project, issue_type: IssueType) -> Folder:
    return make_folder(db_session, project, issue_type, "Backend", stamp=90)


@pytest.fixture()
def remote_folder(db_session: Session, other_project: Project, issue_type: IssueType) -> Folder:
    """A folder of the same type in a project nobody but admins can see."""
    return make_folder(db_session, other_project, issue_type, "Remote", stamp=80)


@pytest.fixture()
def public_view(db_session: Session, issue_type: IssueType) -> View:
    view = View(type_id=issue_type.type_id, user_id=None, view_name="Open bugs",
                view_def="status:open")
    db_session.add(view)
    db_session.commit()
    return view


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def member_headers(member_user: User) -> dict[str, str]:
    return auth_headers(member_user)


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers(admin_user)
