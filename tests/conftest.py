from pathlib import Path

import pytest
from fastapi.testclient import TestClient

import config
from db import database
from db.database import Storage, memory_storage, open_storage
from models.capsule import Attachment, Capsule, Flashcard, Note, QuizQuestion

ENV_OVERRIDES = ("POCKET_CLASSROOM_DB", "ATTACHMENT_MAX_BYTES", "AUTOSAVE_INTERVAL", "LOG_LEVEL")


def make_capsule(capsule_id: str = "cap-1", title: str = "Cells", **overrides) -> Capsule:
    fields = dict(
        id=capsule_id,
        title=title,
        description="Parts of a cell",
        author="Ada",
        tags=["biology", "cells"],
        created_at="2024-05-01T09:00:00.000Z",
        updated_at="2024-05-01T09:00:00.000Z",
        notes=[Note(id="n1", content="# Membrane\n\nKeeps things in.")],
        flashcards=[
            Flashcard(id="f1", front="Powerhouse of the cell?", back="Mitochondria"),
            Flashcard(id="f2", front="Holds DNA?", back="Nucleus"),
        ],
        quiz=[
            QuizQuestion(
                id="q1",
                question="Which organelle makes proteins?",
                choices=["Ribosome", "Vacuole", "Lysosome"],
                correct_index=0,
                explanation="Ribosomes translate mRNA.",
            ),
            QuizQuestion(id="q2", question="Plants only?", choices=["Chloroplast", "Nucleus"], correct_index=0),
        ],
        attachments=[
            Attachment(
                id="a1",
                name="cell.txt",
                type="text/plain",
                size=5,
                data_url="data:text/plain;base64,aGVsbG8=",
                uploaded_at="2024-05-01T09:01:00.000Z",
            )
        ],
    )
    fields.update(overrides)
    return Capsule(**fields)


@pytest.fixture
def storage() -> Storage:
    store = memory_storage()
    yield store
    store.close()


@pytest.fixture
def sqlite_storage(tmp_path: Path) -> Storage:
    store = open_storage(tmp_path / "capsules.db")
    yield store
    store.close()


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Point config and storage at a temporary home, like a fresh install."""
    config_dir = tmp_path / ".pocket-classroom"
    config_dir.mkdir()
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    monkeypatch.setattr(database, "DB_PATH", config_dir / "capsules.db")
    return config_dir


@pytest.fixture
def client(app_env):
    from main import app

    database.init_db()
    return TestClient(app)


@pytest.fixture
def capsule_factory():
    return make_capsule
