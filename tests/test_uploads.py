"""API tests for attachment uploads: limits, all-or-nothing batches, and blob cleanup."""

import unittest
from datetime import datetime
from unittest.mock import patch

from fastapi.testclient import TestClient

from api_support import ApiTestCase

from app.core.storage import LocalAttachmentStore, StorageError
from app.models.feature import (
    FILE_NAME_MAX_LENGTH,
    FILE_TYPE_MAX_LENGTH,
    Attachment,
    Feature,
)
from app.services.attachments import IncomingFile, clip_file_name


def _files(count: int, size: int = 16) -> list[tuple[str, tuple[str, bytes, str]]]:
    """Multipart parts named 'attachments'."""
    return [
        ("attachments", (f"file{i}.txt", bytes([65 + i % 26]) * size, "text/plain"))
        for i in range(count)
    ]


class UploadTestCase(ApiTestCase):
    settings_overrides = {"MAX_UPLOAD_FILE_BYTES": 1024}

    def setUp(self) -> None:
        super().setUp()
        self.headers = self.auth_headers("admin@example.com")
        self.feature = self.create_feature(self.headers)
        self.upload_url = f"/api/upload/feature/{self.feature['id']}/attachments"

    def stored_blobs(self) -> list[str]:
        return sorted(p.name for p in self.upload_dir.iterdir() if p.is_file())

    def attachment_count(self) -> int:
        return self.db_session().query(Attachment).count()


class TestFeatureAttachments(UploadTestCase):
    """POST /api/upload/feature/{id}/attachments"""

    def test_upload_two_files(self) -> None:
        resp = self.client.post(self.upload_url, files=_files(2), headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body["message"], "2 file(s) uploaded successfully")
        uploaded = body["data"]["uploadedFiles"]
        self.assertEqual([f["fileName"] for f in uploaded], ["file0.txt", "file1.txt"])
        self.assertEqual(uploaded[0]["fileType"], "text/plain")
        self.assertEqual(uploaded[0]["fileSize"], 16)
        self.assertEqual(len(body["data"]["feature"]["attachments"]), 2)
        self.assertEqual(len(self.stored_blobs()), 2)

        served = self.client.get(uploaded[0]["url"])
        self.assertEqual(served.status_code, 200)
        self.assertEqual(served.content, b"A" * 16)

        detail = self.client.get(f"/api/features/{self.feature['id']}").json()
        self.assertEqual(len(detail["data"]["feature"]["attachments"]), 2)

    def test_six_files_rejected_and_nothing_persisted(self) -> None:
        resp = self.client.post(self.upload_url, files=_files(6), headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Too many files. Maximum 5 files per upload.")
        self.assertEqual(self.attachment_count(), 0)
        self.assertEqual(self.stored_blobs(), [])

    def test_no_files(self) -> None:
        resp = self.client.post(
            self.upload_url, data={"note": "nothing here"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "No files uploaded")

    def test_one_oversized_file_rejects_the_batch(self) -> None:
        files = _files(2) + [("attachments", ("big.bin", b"0" * 1025, "application/octet-stream"))]
        resp = self.client.post(self.upload_url, files=files, headers=self.headers)
        self.assertEqual(resp.status_code, 400)
        self.assertTrue(resp.json()["message"].startswith("File size too large."))
        self.assertEqual(self.attachment_count(), 0)
        self.assertEqual(self.stored_blobs(), [])

    def test_unknown_feature_is_404_and_stores_nothing(self) -> None:
        resp = self.client.post(
            "/api/upload/feature/999/attachments", files=_files(1), headers=self.headers
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.stored_blobs(), [])

    def test_requires_admin(self) -> None:
        resp = self.client.post(self.upload_url, files=_files(1))
        self.assertEqual(resp.status_code, 401)
        viewer = self.auth_headers("viewer@example.com", role="user")
        resp = self.client.post(self.upload_url, files=_files(1), headers=viewer)
        self.assertEqual(resp.status_code, 403)

    def test_long_file_name_is_clipped_to_column_length(self) -> None:
        name = "n" * 300 + ".pdf"
        files = [("attachments", (name, b"%PDF", "application/pdf"))]
        resp = self.client.post(self.upload_url, files=files, headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        uploaded = resp.json()["data"]["uploadedFiles"][0]
        self.assertEqual(len(uploaded["fileName"]), FILE_NAME_MAX_LENGTH)
        self.assertTrue(uploaded["fileName"].endswith(".pdf"))
        stored = self.db_session().query(Attachment).one()
        self.assertEqual(stored.file_name, uploaded["fileName"])

    def test_upload_bumps_feature_updated_at(self) -> None:
        db = self.db_session()
        feature = db.get(Feature, self.feature["id"])
        feature.updated_at = datetime(2000, 1, 1)
        db.commit()

        resp = self.client.post(self.upload_url, files=_files(1), headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertFalse(resp.json()["data"]["feature"]["updatedAt"].startswith("2000"))
        detail = self.client.get(f"/api/features/{self.feature['id']}").json()
        self.assertFalse(detail["data"]["feature"]["updatedAt"].startswith("2000"))

    def test_storage_failure_mid_batch_rolls_back(self) -> None:
        real_save = LocalAttachmentStore.save
        calls = {"n": 0}

        def flaky_save(store, filename, content_type, data):
            calls["n"] += 1
            if calls["n"] == 2:
                raise StorageError("disk full")
            return real_save(store, filename, content_type, data)

        # Unhandled errors are re-raised to the test client by default; inspect the 500 instead.
        client = TestClient(self.app, raise_server_exceptions=False)
        with patch.object(LocalAttachmentStore, "save", flaky_save):
            resp = client.post(self.upload_url, files=_files(3), headers=self.headers)
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"success": False, "message": "Internal server error"})
        self.assertEqual(self.attachment_count(), 0)
        self.assertEqual(self.stored_blobs(), [])


class TestAttachmentCleanup(UploadTestCase):
    """Deleting attachments or their feature removes the stored blobs too."""

    def _upload(self, count: int) -> list[dict]:
        resp = self.client.post(self.upload_url, files=_files(count), headers=self.headers)
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["data"]["uploadedFiles"]

    def test_delete_feature_cascades_to_attachments_and_blobs(self) -> None:
        self._upload(3)
        resp = self.client.delete(f"/api/features/{self.feature['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.attachment_count(), 0)
        self.assertEqual(self.stored_blobs(), [])

    def test_delete_feature_survives_missing_blob(self) -> None:
        uploaded = self._upload(2)
        (self.upload_dir / uploaded[0]["publicId"]).unlink()
        resp = self.client.delete(f"/api/features/{self.feature['id']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.stored_blobs(), [])

    def test_delete_single_attachment(self) -> None:
        uploaded = self._upload(2)
        resp = self.client.delete(
            f"/api/features/{self.feature['id']}/attachments/{uploaded[0]['id']}",
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200)
        remaining = resp.json()["data"]["feature"]["attachments"]
        self.assertEqual([a["id"] for a in remaining], [uploaded[1]["id"]])
        self.assertEqual(self.stored_blobs(), [uploaded[1]["publicId"]])

    def test_deleting_stored_file_removes_its_attachment_row(self) -> None:
        uploaded = self._upload(2)
        resp = self.client.delete(
            f"/api/upload/file/{uploaded[0]['publicId']}", headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.attachment_count(), 1)
        self.assertEqual(self.stored_blobs(), [uploaded[1]["publicId"]])
        detail = self.client.get(f"/api/features/{self.feature['id']}").json()
        remaining = detail["data"]["feature"]["attachments"]
        self.assertEqual([a["id"] for a in remaining], [uploaded[1]["id"]])

    def test_stored_file_delete_clears_row_when_blob_already_gone(self) -> None:
        uploaded = self._upload(1)
        (self.upload_dir / uploaded[0]["publicId"]).unlink()
        resp = self.client.delete(
            f"/api/upload/file/{uploaded[0]['publicId']}", headers=self.headers
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(self.attachment_count(), 0)

    def test_delete_unknown_attachment(self) -> None:
        resp = self.client.delete(
            f"/api/features/{self.feature['id']}/attachments/999", headers=self.headers
        )
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["message"], "Attachment not found")


class TestSingleFile(UploadTestCase):
    """POST /api/upload/single and DELETE /api/upload/file/{public_id}"""

    def test_upload_then_delete(self) -> None:
        resp = self.client.post(
            "/api/upload/single",
            files={"file": ("notes.md", b"# notes", "text/markdown")},
            headers=self.headers,
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        stored = resp.json()["data"]["file"]
        self.assertEqual(stored["fileName"], "notes.md")
        self.assertEqual(stored["fileSize"], 7)
        self.assertEqual(self.stored_blobs(), [stored["publicId"]])

        resp = self.client.delete(f"/api/upload/file/{stored['publicId']}", headers=self.headers)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], "File deleted successfully")
        self.assertEqual(self.stored_blobs(), [])

        resp = self.client.delete(f"/api/upload/file/{stored['publicId']}", headers=self.headers)
        self.assertEqual(resp.status_code, 404)

    def test_missing_file_field(self) -> None:
        resp = self.client.post(
            "/api/upload/single", data={"other": "value"}, headers=self.headers
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "No file uploaded")


class TestClipFileName(unittest.TestCase):
    """Client file names are shortened to fit the attachment columns."""

    def test_short_names_unchanged(self) -> None:
        self.assertEqual(clip_file_name("report.pdf"), "report.pdf")

    def test_keeps_short_extension(self) -> None:
        self.assertEqual(clip_file_name("abcdefghij.txt", limit=8), "abcd.txt")

    def test_long_extension_is_cut_like_the_rest(self) -> None:
        name = "a." + "b" * 40
        self.assertEqual(clip_file_name(name, limit=10), name[:10])

    def test_incoming_file_defaults_and_clips(self) -> None:
        f = IncomingFile(filename="", content_type="x" * 300, data=b"")
        self.assertEqual(f.filename, "file")
        self.assertEqual(len(f.content_type), FILE_TYPE_MAX_LENGTH)
        self.assertEqual(IncomingFile("a", "", b"").content_type, "application/octet-stream")


if __name__ == "__main__":
    unittest.main()
