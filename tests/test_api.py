import json
from urllib.parse import quote

from db import database
from db.schema import SCHEMA_VERSION


def _sample_id(client):
    entries = client.get("/capsules/").json()
    assert len(entries) == 1
    return entries[0]["id"]


def test_home_reports_seeded_library(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"name": "Pocket Classroom", "schemaVersion": SCHEMA_VERSION, "capsuleCount": 1}


def test_list_search_filters_by_query(client):
    assert len(client.get("/capsules/", params={"q": "JAVASCRIPT"}).json()) == 1
    assert client.get("/capsules/", params={"q": "chemistry"}).json() == []


def test_new_put_get_and_list(client):
    capsule = client.get("/capsules/new").json()
    assert capsule["version"] == SCHEMA_VERSION
    assert capsule["notes"] == []
    assert client.get(f"/capsules/{capsule['id']}").status_code == 404

    capsule["title"] = "Intro"
    capsule["notes"] = [{"id": "n-1", "content": "# Hi"}]
    response = client.put(f"/capsules/{capsule['id']}", json=capsule)
    assert response.status_code == 200
    assert response.json()["noteCount"] == 1

    stored = client.get(f"/capsules/{capsule['id']}").json()
    assert stored == capsule
    entries = client.get("/capsules/").json()
    assert [entry["title"] for entry in entries] == ["Introduction to JavaScript", "Intro"]
    assert entries[1]["flashcardCount"] == 0
    assert entries[1]["quizCount"] == 0


def test_put_rejects_mismatched_id(client):
    capsule = client.get("/capsules/new").json()
    response = client.put("/capsules/somewhere-else", json=capsule)
    assert response.status_code == 400


def test_put_rejects_invalid_quiz(client):
    capsule = client.get("/capsules/new").json()
    capsule["quiz"] = [{"id": "q", "question": "?", "choices": ["a"], "correctIndex": 3}]
    assert client.put(f"/capsules/{capsule['id']}", json=capsule).status_code == 422


def test_delete_cascades(client):
    capsule_id = _sample_id(client)
    client.post(f"/progress/{capsule_id}/quiz", data={"score": 2})

    assert client.delete(f"/capsules/{capsule_id}").status_code == 204
    assert client.get(f"/capsules/{capsule_id}").status_code == 404
    assert client.get("/capsules/").json() == []
    progress = client.get(f"/progress/{capsule_id}").json()
    assert progress["progress"]["bestQuizScore"] == 0
    assert progress["summary"] is None
    assert client.delete(f"/capsules/{capsule_id}").status_code == 404


def test_progress_endpoints(client):
    capsule_id = _sample_id(client)
    card_id = client.get(f"/capsules/{capsule_id}").json()["flashcards"][0]["id"]

    known = client.post(f"/progress/{capsule_id}/known", data={"card_id": card_id}).json()
    assert known["knownFlashcards"] == [card_id]
    unknown = client.post(f"/progress/{capsule_id}/unknown", data={"card_id": card_id}).json()
    assert unknown["unknownFlashcards"] == [card_id]
    assert unknown["knownFlashcards"] == []

    client.post(f"/progress/{capsule_id}/quiz", data={"score": 2})
    lower = client.post(f"/progress/{capsule_id}/quiz", data={"score": 1}).json()
    assert lower["bestQuizScore"] == 2

    body = client.get(f"/progress/{capsule_id}").json()
    assert body["summary"]["unknownCount"] == 1
    assert body["summary"]["quizPercent"] == 100
    assert client.post(f"/progress/{capsule_id}/quiz", data={"score": -1}).status_code == 400
    assert client.post("/progress/missing/known", data={"card_id": "x"}).status_code == 404


def test_save_progress_rejects_overlap(client):
    capsule_id = _sample_id(client)
    payload = {"capsuleId": capsule_id, "knownFlashcards": ["a"], "unknownFlashcards": ["a"]}
    assert client.put(f"/progress/{capsule_id}", json=payload).status_code == 422
    payload["unknownFlashcards"] = ["b"]
    response = client.put(f"/progress/{capsule_id}", json=payload)
    assert response.status_code == 200
    assert response.json()["unknownFlashcards"] == ["b"]


def test_put_progress_keeps_best_quiz_score(client):
    capsule_id = _sample_id(client)
    client.post(f"/progress/{capsule_id}/quiz", data={"score": 2})
    payload = {"capsuleId": capsule_id, "bestQuizScore": 0}

    response = client.put(f"/progress/{capsule_id}", json=payload)

    assert response.json()["bestQuizScore"] == 2
    assert client.get(f"/progress/{capsule_id}").json()["progress"]["bestQuizScore"] == 2


def test_attachment_batch_upload(client):
    capsule_id = _sample_id(client)
    files = [
        ("files", ("notes.txt", b"a" * 1024, "text/plain")),
        ("files", ("lecture.mp4", b"0" * (6 * 1024 * 1024), "video/mp4")),
    ]
    response = client.post(f"/capsules/{capsule_id}/attachments", files=files)
    assert response.status_code == 200
    body = response.json()
    assert [att["name"] for att in body["added"]] == ["notes.txt"]
    assert "dataUrl" not in body["added"][0]
    assert [item["filename"] for item in body["rejected"]] == ["lecture.mp4"]
    assert body["attachmentCount"] == 1
    assert client.get("/capsules/").json()[0]["attachmentCount"] == 1

    attachment_id = body["added"][0]["id"]
    download = client.get(f"/capsules/{capsule_id}/attachments/{attachment_id}")
    assert download.status_code == 200
    assert download.content == b"a" * 1024
    assert download.headers["content-type"].startswith("text/plain")

    removed = client.delete(f"/capsules/{capsule_id}/attachments/{attachment_id}")
    assert removed.json()["attachmentCount"] == 0
    assert client.delete(f"/capsules/{capsule_id}/attachments/{attachment_id}").status_code == 404


def test_export_download_and_reimport(client):
    capsule_id = _sample_id(client)
    response = client.get(f"/transfer/{capsule_id}/export")
    assert response.status_code == 200
    assert 'filename="introduction-to-javascript.json"' in response.headers["content-disposition"]
    exported = response.text
    assert json.loads(exported)["id"] == capsule_id

    client.delete(f"/capsules/{capsule_id}")
    imported = client.post("/transfer/import", data={"text": exported})
    assert imported.status_code == 200
    assert imported.json()["replaced"] is False
    assert imported.json()["capsule"]["id"] == capsule_id

    again = client.post(
        "/transfer/import",
        files={"file": ("capsule.json", exported.encode("utf-8"), "application/json")},
    )
    assert again.json()["replaced"] is True
    assert len(client.get("/capsules/").json()) == 1


def test_import_errors_are_reported_without_writing(client):
    capsule_id = _sample_id(client)
    exported = client.get(f"/transfer/{capsule_id}/export").json()
    exported["id"] = "foreign"
    exported["version"] = "other-tag"

    response = client.post("/transfer/import", data={"text": json.dumps(exported)})
    assert response.status_code == 400
    assert "other-tag" in response.json()["detail"]

    del exported["notes"]
    exported["version"] = SCHEMA_VERSION
    response = client.post("/transfer/import", data={"text": json.dumps(exported)})
    assert response.status_code == 400
    assert "notes" in response.json()["detail"]

    assert client.post("/transfer/import", data={"text": "{oops"}).status_code == 400
    assert client.post("/transfer/import", data={"text": "  "}).status_code == 400
    assert [entry["id"] for entry in client.get("/capsules/").json()] == [capsule_id]

    with database.open_storage() as storage:
        assert storage.get("foreign") is None


def test_downloads_with_non_ascii_names(client):
    capsule = client.get("/capsules/new").json()
    capsule["title"] = "数学 基础"
    client.put(f"/capsules/{capsule['id']}", json=capsule)

    export = client.get(f"/transfer/{capsule['id']}/export")
    assert export.status_code == 200
    disposition = export.headers["content-disposition"]
    assert 'filename="download.json"' in disposition
    assert f"filename*=UTF-8''{quote('数学-基础.json', safe='')}" in disposition
    assert export.json()["title"] == "数学 基础"

    name = "résumé—日本.txt"
    uploaded = client.post(
        f"/capsules/{capsule['id']}/attachments",
        files=[("files", (name, "héllo".encode("utf-8"), "text/plain"))],
    ).json()
    attachment_id = uploaded["added"][0]["id"]
    assert uploaded["added"][0]["name"] == name

    download = client.get(f"/capsules/{capsule['id']}/attachments/{attachment_id}")
    assert download.status_code == 200
    assert download.content == "héllo".encode("utf-8")
    disposition = download.headers["content-disposition"]
    assert 'filename="resume.txt"' in disposition
    assert f"filename*=UTF-8''{quote(name, safe='')}" in disposition
