import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from svg_tester.app import create_app
from svg_tester.core.catalog import Catalog
from svg_tester.core.settings import TesterSettings, UploadLimits, ValidatorSettings

SMILE = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 72 72">'
    '<circle cx="36" cy="36" r="23" fill="#FCEA2B"/></svg>'
)
HEART = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 72 72">'
    '<path d="M10 10 L60 10 L36 60 Z" fill="#D22F27"/></svg>'
)

FAKE_VALIDATOR = '''
import json
import pathlib
import sys

mode, metadata, workspace, report_dir = sys.argv[1:5]
records = json.loads(pathlib.Path(metadata).read_text(encoding="utf-8"))
if mode == "crash":
    sys.stderr.write("boom: <suite> exploded\\n")
    sys.exit(3)
items = "".join(f"<li>{r['hexcode']}:{r['resolved']}</li>" for r in records)
page = f"<html><body><p id='ws'>{workspace}</p><ul>{items}</ul></body></html>"
pathlib.Path(report_dir, "report.html").write_text(page, encoding="utf-8")
sys.exit(1 if mode == "failing" else 0)
'''


def _make_client(
    tmp_path: Path,
    mode: str = "ok",
    command: list[str] | None = None,
    max_file_bytes: int = 4096,
) -> tuple[TestClient, Path]:
    script = tmp_path / "fake_validator.py"
    script.write_text(FAKE_VALIDATOR, encoding="utf-8")
    jobs_root = tmp_path / "jobs"
    jobs_root.mkdir()
    settings = TesterSettings(
        tmp_root=jobs_root,
        public_dir=None,
        uploads=UploadLimits(max_file_bytes=max_file_bytes, max_files=20),
        validator=ValidatorSettings(
            command=command or [sys.executable, str(script), mode, "{metadata}", "{workspace}", "{report_dir}"],
            suite_dir=tmp_path / "suite",
        ),
    )
    catalog = Catalog.from_records([{"hexcode": "1F600", "emoji": "😀", "annotation": "grinning face"}])
    return TestClient(create_app(settings, catalog=catalog)), jobs_root


@pytest.fixture()
def client(tmp_path):
    test_client, jobs_root = _make_client(tmp_path)
    with test_client:
        yield test_client, jobs_root


def _svg_files(*items: tuple[str, str]) -> list[tuple[str, tuple[str, bytes, str]]]:
    return [("svgFiles", (name, content.encode("utf-8"), "image/svg+xml")) for name, content in items]


def test_svg_route_returns_validator_report(client):
    test_client, jobs_root = client
    response = test_client.post(
        "/test-svg",
        files=_svg_files(("1F600.svg", SMILE), ("E0000.svg", HEART)),
    )
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<li>1F600:True</li><li>E0000:False</li>" in response.text
    assert list(jobs_root.iterdir()) == []


def test_svg_route_keeps_report_when_validations_fail(tmp_path):
    test_client, jobs_root = _make_client(tmp_path, mode="failing")
    with test_client:
        response = test_client.post("/test-svg", files=_svg_files(("1F600.svg", SMILE)))
    assert response.status_code == 200
    assert "<li>1F600:True</li>" in response.text
    assert list(jobs_root.iterdir()) == []


def test_svg_route_falls_back_when_validator_crashes(tmp_path):
    test_client, jobs_root = _make_client(tmp_path, mode="crash")
    with test_client:
        response = test_client.post("/test-svg", files=_svg_files(("1F600.svg", SMILE)))
    assert response.status_code == 200
    assert "SVG-Tester (error)" in response.text
    assert "boom: &lt;suite&gt; exploded" in response.text
    assert "exit code 3" in response.text
    assert list(jobs_root.iterdir()) == []


def test_svg_route_falls_back_when_validator_is_missing(tmp_path):
    test_client, jobs_root = _make_client(tmp_path, command=["/nonexistent/validator-binary", "{metadata}"])
    with test_client:
        response = test_client.post("/test-svg", files=_svg_files(("1F600.svg", SMILE)))
    assert response.status_code == 200
    assert "could not be started" in response.text
    assert list(jobs_root.iterdir()) == []


def test_empty_batch_is_rejected_without_leaving_workspace(client):
    test_client, jobs_root = client
    response = test_client.post("/test-svg", data={"note": "nothing attached"})
    assert response.status_code == 400
    assert "Please choose some OpenMoji svg files" in response.text
    assert list(jobs_root.iterdir()) == []


def test_files_under_other_field_are_ignored(client):
    test_client, jobs_root = client
    response = test_client.post(
        "/test-visual",
        files=[("other", ("1F600.svg", SMILE.encode("utf-8"), "image/svg+xml"))],
    )
    assert response.status_code == 400
    assert list(jobs_root.iterdir()) == []


def test_non_svg_upload_is_rejected(client):
    test_client, jobs_root = client
    response = test_client.post(
        "/test-svg",
        files=[("svgFiles", ("notes.txt", b"hello", "text/plain"))],
    )
    assert response.status_code == 400
    assert "Only .svg files are allowed" in response.text
    assert list(jobs_root.iterdir()) == []


def test_oversized_file_is_rejected(client):
    test_client, jobs_root = client
    big = "<svg>" + "x" * 5000 + "</svg>"
    response = test_client.post("/test-svg", files=_svg_files(("big.svg", big)))
    assert response.status_code == 413
    assert "File too large" in response.text
    assert list(jobs_root.iterdir()) == []


def test_too_many_files_is_rejected(client):
    test_client, jobs_root = client
    files = _svg_files(*[(f"icon{index}.svg", SMILE) for index in range(21)])
    response = test_client.post("/test-visual", files=files)
    assert response.status_code == 413
    assert list(jobs_root.iterdir()) == []


def test_visual_route_renders_files_in_order(client):
    test_client, jobs_root = client
    response = test_client.post(
        "/test-visual",
        files=_svg_files(("smile&frown.svg", SMILE), ("2764.svg", HEART)),
    )
    assert response.status_code == 200
    body = response.text
    assert body.count('<div class="emoji">') == 2
    first = body.index('<div class="title">smile&amp;frown.svg</div>')
    second = body.index('<div class="title">2764.svg</div>')
    assert first < second
    assert 'fill="#FCEA2B"' in body[first:second]
    assert 'fill="#D22F27"' in body[second:]
    assert 'id="outline"' in body
    assert "{{{result}}}" not in body
    assert list(jobs_root.iterdir()) == []


def test_visual_route_survives_one_broken_file(client):
    test_client, jobs_root = client
    items = [(f"icon{index}.svg", SMILE) for index in range(9)]
    items.insert(4, ("broken.svg", "<svg><g>unclosed"))
    response = test_client.post("/test-visual", files=_svg_files(*items))
    assert response.status_code == 200
    assert response.text.count('<div class="emoji">') == 10
    assert "<div><svg><g>unclosed</div>" in response.text
    assert list(jobs_root.iterdir()) == []


def test_landing_and_health(client):
    test_client, _ = client
    assert test_client.get("/").json()["endpoints"] == ["/test-svg", "/test-visual"]
    assert test_client.get("/health").json() == {"status": "ok", "catalog_entries": 1}


def test_upload_named_like_report_cannot_replace_fallback(tmp_path):
    test_client, jobs_root = _make_client(tmp_path, mode="crash")
    with test_client:
        response = test_client.post(
            "/test-svg",
            files=[
                ("svgFiles", ("report.html", b"<h1>FORGED</h1>", "image/svg+xml")),
                ("svgFiles", ("1F600.svg", SMILE.encode("utf-8"), "image/svg+xml")),
            ],
        )
    assert response.status_code == 200
    assert "FORGED" not in response.text
    assert "SVG-Tester (error)" in response.text
    assert list(jobs_root.iterdir()) == []


def test_upload_named_like_metadata_keeps_its_own_content(client):
    test_client, jobs_root = client
    response = test_client.post(
        "/test-visual",
        files=_svg_files(("openmoji.json", SMILE), ("2764.svg", HEART)),
    )
    assert response.status_code == 200
    assert '<div class="title">openmoji.json</div><div><svg' in response.text
    assert '"hexcode"' not in response.text
    assert list(jobs_root.iterdir()) == []


def test_dot_dot_filename_is_a_client_error(client):
    test_client, jobs_root = client
    response = test_client.post(
        "/test-visual",
        files=[("svgFiles", ("..", b"<svg/>", "image/svg+xml"))],
    )
    assert response.status_code == 400
    assert "Invalid file name" in response.text
    assert list(jobs_root.iterdir()) == []


def test_deeply_nested_svg_does_not_fail_visual_report(tmp_path):
    test_client, jobs_root = _make_client(tmp_path, max_file_bytes=64 * 1024)
    depth = 3000
    deep = '<svg xmlns="http://www.w3.org/2000/svg">' + "<g>" * depth + "</g>" * depth + "</svg>"
    with test_client:
        response = test_client.post(
            "/test-visual",
            files=_svg_files(("deep.svg", deep), ("ok.svg", SMILE)),
        )
    assert response.status_code == 200
    assert response.text.count('<div class="emoji">') == 2
    assert list(jobs_root.iterdir()) == []
