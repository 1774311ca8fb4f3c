"""Shared fixtures: isolated store directories and a recording fake encoder."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from assembler.config import Settings
from assembler.encoder import FFmpegEncoder
from assembler.main import create_app
from assembler.models import TemplateRole
from assembler.pipeline import VideoPipeline
from assembler.storage import ArtifactStore


class FakeEncoder(FFmpegEncoder):
    """Builds real commands but, instead of spawning ffmpeg, records them.

    ``fail_on`` names the 1-based invocation that should fail.
    """

    def __init__(self, fail_on=None, diagnostic="boom: invalid data"):
        super().__init__(binary="ffmpeg")
        self.fail_on = fail_on
        self.diagnostic = diagnostic
        self.calls = []

    def invoke(self, command):
        self.calls.append(command)
        if self.fail_on == len(self.calls):
            # partial output, which must never be trusted
            command.output.write_bytes(b"partial")
            return False, self.diagnostic
        command.output.write_bytes(b"encoded:" + command.description.encode())
        return True, str(command.output)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        uploads_dir=str(tmp_path / "uploads"),
        output_dir=str(tmp_path / "output"),
        templates_dir=str(tmp_path / "templates"),
        _env_file=None,
    )


@pytest.fixture
def store(settings):
    store = ArtifactStore.from_settings(settings)
    store.ensure_directories()
    return store


@pytest.fixture
def fake_encoder():
    return FakeEncoder()


@pytest.fixture
def pipeline(store, fake_encoder):
    return VideoPipeline(store, fake_encoder)


@pytest.fixture
def with_templates(store):
    for role in TemplateRole:
        store.template_path(role).write_bytes(f"{role.value}-bytes".encode())
    return store


@pytest.fixture
def main_upload(store):
    path = store.uploads_dir / "abc_main.mp4"
    path.write_bytes(b"main-bytes")
    return path


@pytest.fixture
def client(settings, fake_encoder):
    app = create_app(settings, encoder=fake_encoder)
    with TestClient(app) as client:
        yield client
