"""End-to-end run against a real ffmpeg binary; skipped when none is installed."""

import re
import shutil
import subprocess

import pytest
from fastapi.testclient import TestClient

from assembler.encoder import FFmpegEncoder
from assembler.main import create_app

FFMPEG = shutil.which("ffmpeg")

pytestmark = pytest.mark.skipif(FFMPEG is None, reason="ffmpeg not installed")


def _make_clip(path, color, seconds):
    subprocess.run(
        [
            FFMPEG, "-y",
            "-f", "lavfi", "-i", f"color=c={color}:s=320x240:d={seconds}:r=10",
            "-f", "lavfi", "-i", "anullsrc=r=44100:cl=mono",
            "-shortest",
            "-c:v", "libx264", "-crf", "28", "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "32k",
            str(path),
        ],
        check=True,
        capture_output=True,
    )
    return path


def _has_drawtext():
    filters = subprocess.run([FFMPEG, "-hide_banner", "-filters"], capture_output=True, text=True)
    return " drawtext " in filters.stdout


def test_jane_doe_end_to_end(settings, tmp_path):
    if not _has_drawtext():
        pytest.skip("ffmpeg built without drawtext")

    intro = _make_clip(tmp_path / "intro.mp4", "blue", 2)
    outro = _make_clip(tmp_path / "outro.mp4", "green", 2)
    main = _make_clip(tmp_path / "main.mp4", "red", 5)

    app = create_app(settings, encoder=FFmpegEncoder(binary=FFMPEG, timeout=120))
    with TestClient(app) as client:
        for role, clip in (("intro", intro), ("outro", outro)):
            with open(clip, "rb") as f:
                assert client.post(f"/upload-template/{role}", files={"video": (clip.name, f, "video/mp4")}).status_code == 200

        with open(main, "rb") as f:
            response = client.post(
                "/process-video",
                data={"customer_name": "Jane Doe"},
                files={"main_video": ("main.mp4", f, "video/mp4")},
            )

        assert response.status_code == 200, response.text
        name = response.json()["output_url"].lstrip("/")
        assert re.fullmatch(r"job_\d+_final\.mp4", name)
        assert name in client.get("/videos").json()["videos"]
        assert client.get(f"/download/{name}").status_code == 200
