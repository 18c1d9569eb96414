from __future__ import annotations

import pytest

from recipebook.errors import StorageError
from recipebook.storage import JsonFileStorage


def test_missing_file_reads_as_none(tmp_path):
    storage = JsonFileStorage(tmp_path / "recipes.json")
    assert storage.read() is None


def test_write_then_read(tmp_path):
    storage = JsonFileStorage(tmp_path / "nested" / "recipes.json")

    storage.write('[{"id": "1"}]')

    assert storage.read() == '[{"id": "1"}]'
    assert [path.name for path in storage.path.parent.iterdir()] == ["recipes.json"]


def test_write_into_a_file_path_raises_storage_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    storage = JsonFileStorage(blocker / "recipes.json")

    with pytest.raises(StorageError):
        storage.write("[]")


def test_reading_a_directory_raises_storage_error(tmp_path):
    storage = JsonFileStorage(tmp_path)

    with pytest.raises(StorageError):
        storage.read()


def test_from_env_uses_recipes_file(monkeypatch, tmp_path):
    monkeypatch.setenv("RECIPES_FILE", str(tmp_path / "mine.json"))
    assert JsonFileStorage.from_env().path == tmp_path / "mine.json"


class FakeSnapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return self._data


class FakeDocument:
    def __init__(self):
        self.data = None

    def get(self):
        return FakeSnapshot(self.data)

    def set(self, data):
        self.data = data


class FakeFirestoreClient:
    def __init__(self):
        self.document_ref = FakeDocument()
        self.paths = []

    def collection(self, name):
        client = self

        class _Collection:
            def document(self, document_id):
                client.paths.append((name, document_id))
                return client.document_ref

        return _Collection()


def test_firestore_storage_keeps_payload_in_one_document():
    pytest.importorskip("google.cloud.firestore")
    from recipebook.gcp_storage import FirestoreRecipeStorage

    client = FakeFirestoreClient()
    storage = FirestoreRecipeStorage(collection_name="books", document_id="mine", client=client)

    assert storage.read() is None
    storage.write("[]")

    assert client.paths == [("books", "mine")]
    assert storage.read() == "[]"


def test_firestore_errors_become_storage_errors():
    pytest.importorskip("google.cloud.firestore")
    from google.api_core import exceptions as gcloud_exceptions

    from recipebook.gcp_storage import FirestoreRecipeStorage

    client = FakeFirestoreClient()

    def broken_get():
        raise gcloud_exceptions.ServiceUnavailable("down")

    client.document_ref.get = broken_get
    storage = FirestoreRecipeStorage(client=client)

    with pytest.raises(StorageError):
        storage.read()
