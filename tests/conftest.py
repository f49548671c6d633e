import base64
import json
import re
from types import SimpleNamespace

import pytest

from app import create_app
from portal.extensions import store

PARENT_FOLDER_ID = "parent-root"

_NAME_RE = re.compile(r"name='((?:[^'\\]|\\.)*)'")
_PARENT_RE = re.compile(r"'((?:[^'\\]|\\.)*)' in parents")


def data_url(content=b"%PDF-1.4 test document", mime="application/pdf"):
    return f"data:{mime};base64,{base64.b64encode(content).decode()}"


# ---------- Google Drive ----------
class _Call:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeDriveFiles:
    def __init__(self, service):
        self.service = service

    def list(self, q, **kwargs):
        def run():
            name = _NAME_RE.search(q).group(1).replace("\\'", "'")
            parent = _PARENT_RE.search(q).group(1)
            hits = [
                {"id": f["id"], "name": f["name"]}
                for f in self.service.folders
                if f["name"] == name and parent in f["parents"]
            ]
            return {"files": hits}

        return _Call(run)

    def create(self, body, media_body=None, **kwargs):
        def run():
            if media_body is None and self.service.folder_failures > 0:
                self.service.folder_failures -= 1
                raise RuntimeError("Drive quota exceeded")
            self.service.counter += 1
            if media_body is None:
                folder = {"id": f"folder-{self.service.counter}", "name": body["name"], "parents": body["parents"]}
                self.service.folders.append(folder)
                return {"id": folder["id"], "name": folder["name"]}
            file_id = f"file-{self.service.counter}"
            self.service.uploads.append({"id": file_id, "name": body["name"], "parents": body["parents"]})
            return {
                "id": file_id,
                "name": body["name"],
                "webViewLink": f"https://drive.google.com/file/d/{file_id}/view",
                "webContentLink": f"https://drive.google.com/uc?id={file_id}",
                "size": "42",
            }

        return _Call(run)

    def get(self, fileId, **kwargs):
        def run():
            if fileId != PARENT_FOLDER_ID and not any(f["id"] == fileId for f in self.service.folders):
                raise RuntimeError(f"File not found: {fileId}")
            return {"id": fileId, "name": "root"}

        return _Call(run)


class FakeDriveService:
    def __init__(self):
        self.folders = []
        self.uploads = []
        self.counter = 0
        self.folder_failures = 0

    def files(self):
        return FakeDriveFiles(self)

    def about(self):
        return SimpleNamespace(get=lambda **kw: _Call(lambda: {"user": {"emailAddress": "svc@test"}}))

    def folder_names(self):
        return [f["name"] for f in self.folders]


# ---------- chat completions ----------
class FakeCompletions:
    def __init__(self):
        self.responses = []
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.responses.pop(0) if self.responses else json.dumps({"type": "Other", "documentId": "doc-x"})
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeLLM:
    def __init__(self):
        self.chat = SimpleNamespace(completions=FakeCompletions())

    def queue(self, *replies):
        self.chat.completions.responses.extend(replies)


# ---------- Notion ----------
class FakeNotion:
    def __init__(self):
        self.created = []
        self.pages = SimpleNamespace(create=self._create)

    def _create(self, parent, properties):
        self.created.append({"parent": parent, "properties": properties})
        return {"id": f"notion-{len(self.created)}"}


@pytest.fixture
def drive_service():
    return FakeDriveService()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_notion():
    return FakeNotion()


@pytest.fixture
def app(tmp_path, drive_service, fake_llm, fake_notion):
    app = create_app({
        "TESTING": True,
        "DATA_DIR": str(tmp_path / "data"),
        "UPLOADS_DIR": str(tmp_path / "uploads"),
        "RUN_SCHEDULER": False,
        "FRONTEND_DIST": "",
        "GOOGLE_DRIVE_PARENT_FOLDER_ID": PARENT_FOLDER_ID,
        "DRIVE_SERVICE": drive_service,
        "LLM_CLIENT": fake_llm,
        "NOTION_CLIENT": fake_notion,
        "NOTION_INVESTORS_DB_ID": "investors-db",
        "NOTION_DOCUMENTS_DB_ID": "documents-db",
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def records():
    return store


@pytest.fixture
def investor(client):
    resp = client.post("/api/createInvestor", json={"data": {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "password": "secret",
        "phone": "+971500000000",
    }})
    assert resp.status_code == 200
    return resp.get_json()["data"]
