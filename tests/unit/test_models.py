"""Tests for allocation models."""

from uuid import uuid4

import pytest

from src.allocator.models import Folder, FolderState, Project

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("number", "slot", "tag"),
    [
        (1, 1, "FOLDER-P01-U1"),
        (7, 12, "FOLDER-P07-U12"),
        (42, 3, "FOLDER-P42-U3"),
        (123, 1, "FOLDER-P123-U1"),
    ],
)
def test_folder_tag_format(number, slot, tag):
    project = Project(name="Project", number=number, capacity=20)

    assert project.folder_tag(slot) == tag


def test_new_folder_is_available():
    folder = Folder(project_id=uuid4(), slot=1, tag="FOLDER-P01-U1")

    assert folder.state_enum is FolderState.AVAILABLE
    assert not folder.is_assigned
    assert folder.assigned_user_id is None
    assert folder.assigned_at is None


def test_assigned_folder():
    folder = Folder(
        project_id=uuid4(),
        slot=1,
        tag="FOLDER-P01-U1",
        state=FolderState.ASSIGNED.value,
        assigned_user_id=uuid4(),
    )

    assert folder.state_enum is FolderState.ASSIGNED
    assert folder.is_assigned


def test_ids_are_generated():
    first = Project(name="A", number=1, capacity=1)
    second = Project(name="B", number=2, capacity=1)

    assert first.id != second.id


def test_table_metadata_matches_initial_migration():
    project_indexes = {index.name for index in Project.__table__.indexes}
    folder_constraints = {constraint.name for constraint in Folder.__table__.constraints}

    assert "ix_public_projects_created_at" in project_indexes
    assert "uq_folders_tag" in folder_constraints
    assert not Folder.__table__.c.tag.unique
