"""
ORM models for users, projects, sprints and tasks.

Every table carries a ``deleted_at`` tombstone.  Rows are never
physically removed by the application; repositories exclude
tombstoned rows from every read (see ``repositories.base``), and
``Project.team_members`` applies the same filter so that it never
lists a deleted user.
"""

from sqlalchemy import Column, Date, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from project_manager_api.app.core.db import Base
from project_manager_api.app.models.enums import ProjectStatus, TaskPriority, TaskStatus, UserRole


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime, nullable=True, index=True)


class User(TimestampMixin, Base):
    """Application user.

    A user belongs to at most one project team at a time through
    ``current_project_id``.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    role = Column(
        SAEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.TEAM_MEMBER,
    )
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    # ``use_alter`` breaks the users <-> projects foreign key cycle when
    # the schema is created.
    current_project_id = Column(
        Integer,
        ForeignKey("projects.id", use_alter=True, name="fk_users_current_project_id"),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


class Project(TimestampMixin, Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True, default="")
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    status = Column(
        SAEnum(ProjectStatus, name="project_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    manager = relationship("User", foreign_keys=[manager_id])
    team_members = relationship(
        "User",
        primaryjoin="and_(User.current_project_id == Project.id, User.deleted_at.is_(None))",
        foreign_keys="User.current_project_id",
        viewonly=True,
        order_by="User.id",
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r} manager_id={self.manager_id}>"


class Sprint(TimestampMixin, Base):
    __tablename__ = "sprints"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    goal = Column(Text, nullable=True, default="")
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    project = relationship("Project", foreign_keys=[project_id])

    def __repr__(self) -> str:
        return f"<Sprint id={self.id} name={self.name!r} project_id={self.project_id}>"


class Task(TimestampMixin, Base):
    """A unit of work.

    ``project_id`` is copied from the sprint by the service layer when
    the task is created so that project-wide queries need no join.
    """

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True, default="")
    status = Column(
        SAEnum(TaskStatus, name="task_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TaskStatus.TO_DO,
    )
    priority = Column(
        SAEnum(TaskPriority, name="task_priority", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TaskPriority.MEDIUM,
    )
    due_date = Column(Date, nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    sprint_id = Column(Integer, ForeignKey("sprints.id"), nullable=True, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    project = relationship("Project", foreign_keys=[project_id])
    sprint = relationship("Sprint", foreign_keys=[sprint_id])
    assignee = relationship("User", foreign_keys=[assignee_id])

    def __repr__(self) -> str:
        return f"<Task id={self.id} title={self.title!r} project_id={self.project_id}>"
