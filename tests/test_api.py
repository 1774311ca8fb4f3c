"""HTTP-level tests for the assembler service."""

import re
from unittest.mock import patch

from fastapi.testclient import TestClient

from assembler.main import create_app
from conftest import FakeEncoder


def _upload_templates(client):
    for role in ("intro", "outro"):
        response = client.post(
            f"/upload-template/{role}",
            files={"video": (f"{role}.mp4", b"%s-bytes" % role.encode(), "video/mp4")},
        )
        assert response.status_code == 200


def _process(client, name="Jane Doe"):
    data = {"customer_name": name} if name is not None else {}
    return client.post(
        "/process-video",
        data=data,
        files={"main_video": ("clip.mp4", b"main-bytes", "video/mp4")},
    )


class TestHealthAndUi:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert "timestamp" in body

    def test_index_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Video Assembler" in response.text


class TestTemplates:
    def test_status_after_intro_upload(self, client):
        assert client.get("/template-status").json() == {"intro": False, "outro": False}
        response = client.post(
            "/upload-template/intro",
            files={"video": ("intro.mp4", b"intro", "video/mp4")},
        )
        assert response.status_code == 200
        assert response.json()["message"] == "intro template uploaded successfully"
        assert client.get("/template-status").json() == {"intro": True, "outro": False}

    def test_unknown_role_rejected(self, client):
        response = client.post(
            "/upload-template/middle",
            files={"video": ("x.mp4", b"x", "video/mp4")},
        )
        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "validation_error"
        assert body["details"] == "Invalid template type: middle"
        assert client.get("/template-status").json() == {"intro": False, "outro": False}


class TestProcessVideo:
    def test_success_then_listed_and_downloadable(self, client):
        _upload_templates(client)
        response = _process(client)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["customer_name"] == "Jane Doe"
        assert re.fullmatch(r"/job_\d+_final\.mp4", body["output_url"])
        name = body["output_url"].lstrip("/")

        assert client.get("/videos").json() == {"videos": [name]}

        download = client.get(f"/download/{name}")
        assert download.status_code == 200
        assert download.headers["content-type"] == "video/mp4"
        assert download.content == b"encoded:concatenate ordered segments"

        static = client.get(body["output_url"])
        assert static.status_code == 200

    def test_missing_templates_is_client_error(self, client):
        response = _process(client)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["kind"] == "validation_error"
        assert "upload intro and outro" in body["details"]
        assert client.get("/videos").json() == {"videos": []}

    def test_missing_customer_name(self, client):
        _upload_templates(client)
        response = _process(client, name=None)
        assert response.status_code == 400
        assert response.json()["details"] == "customer_name is required"

    def test_missing_main_video(self, client):
        _upload_templates(client)
        response = client.post("/process-video", data={"customer_name": "Jane"})
        assert response.status_code == 400
        assert response.json()["details"] == "main_video file is required"

    def test_encoder_failure_is_server_error(self, settings):
        app = create_app(settings, encoder=FakeEncoder(fail_on=1, diagnostic="Invalid data found"))
        with TestClient(app) as client:
            _upload_templates(client)
            response = _process(client)

        assert response.status_code == 500
        body = response.json()
        assert body["kind"] == "encoding_error"
        assert body["error"] == "Video processing failed"
        assert body["details"] == "Invalid data found"
        assert re.fullmatch(r"job_\d+", body["job_id"])


class TestDownload:
    def test_nonexistent_is_404(self, client):
        response = client.get("/download/nonexistent.mp4")
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_traversal_is_404(self, client):
        response = client.get("/download/..%2Ftemplates%2Fintro.mp4")
        assert response.status_code == 404


class TestEntrypoint:
    def test_run_starts_uvicorn_with_configured_address(self):
        from assembler import main

        with patch("uvicorn.run") as uvicorn_run, patch.object(main, "configure_logging"):
            main.run()

        uvicorn_run.assert_called_once_with(
            main.app, host=main.default_settings.host, port=main.default_settings.port
        )
