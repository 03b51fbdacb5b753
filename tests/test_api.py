"""Tests for the HTTP endpoints."""

import json
import os
from datetime import datetime, timedelta

from app.core.reporting import DOCX_MEDIA_TYPE
from app.models.chat import Chat
from app.models.report import Report
from helpers import document_text, make_template


def generate(client, **fields):
    form = {
        "employeeName": "Jane Doe",
        "month": "March",
        "year": "2024",
        "generatedDate": "2024-03-31",
        "data": json.dumps({"tasks": [{"title": "Ship release", "status": "done"}]}),
    }
    form.update(fields)
    return client.post("/generate-word-from-excel", data=form)


def test_health(client):
    """Test health reports database connectivity and endpoints."""
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert body["endpoints"]["generate"] == "POST /generate-word-from-excel"


def test_generate_end_to_end(client, upload_dir):
    """Test generation streams the document and stores file and record."""
    response = generate(client)

    assert response.status_code == 200
    assert response.headers["content-type"] == DOCX_MEDIA_TYPE
    assert response.headers["content-disposition"] == "attachment; filename=Jane_Doe_March_2024_report.docx"
    assert "Ship release - done" in document_text(response.content)

    today = datetime.utcnow().date().isoformat()
    expected = os.path.join(str(upload_dir), "Jane_Doe", "March_2024", f"Jane_Doe_March_2024_{today}.docx")
    assert os.path.isfile(expected)

    listing = client.get("/reports").json()
    assert listing["success"] is True
    assert listing["total"] == 1
    report = listing["reports"][0]
    assert report["employeeName"] == "Jane Doe"
    assert report["month"] == "March"
    assert report["year"] == 2024
    assert report["report_file"] == expected
    assert report["fileName"] == f"Jane_Doe_March_2024_{today}.docx"
    assert report["fileSize"] > 0


def test_generate_accepts_and_ignores_uploaded_template(client):
    """Test an uploaded template does not replace the bundled one."""
    upload = make_template("Uploaded {{employeeName}}")
    response = client.post(
        "/generate-word-from-excel",
        data={"employeeName": "Jane Doe", "month": "March", "year": "2024", "data": "{}"},
        files={"template": ("other.docx", upload, DOCX_MEDIA_TYPE)},
    )

    assert response.status_code == 200
    assert "Monthly Task Report" in document_text(response.content)


def test_generate_without_template_returns_400(client, template_path):
    """Test a missing bundled template is a client-facing error."""
    template_path.unlink()

    response = generate(client)

    assert response.status_code == 400
    assert response.json()["error"] == "Template file not found"


def test_generate_template_error_returns_details(client, template_path):
    """Test template syntax problems come back as structured details."""
    template_path.write_bytes(make_template("Broken {{ employeeName + }}"))

    response = generate(client)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Template Error"
    assert body["details"][0]["type"] == "syntax_error"
    assert set(body["details"][0]) == {"type", "tag", "issue"}


def test_generate_rejects_bad_input(client, db):
    """Test malformed data and missing names are rejected with 400."""
    assert generate(client, data="{not json").status_code == 400
    assert generate(client, data="[1, 2]").status_code == 400
    assert generate(client, employeeName="").status_code == 400
    assert db.query(Report).count() == 0


def test_download_then_delete(client):
    """Test a generated report can be downloaded, deleted, and is then gone."""
    generated = generate(client)
    report = client.get("/reports").json()["reports"][0]

    download = client.get(f"/reports/download/{report['_id']}")
    assert download.status_code == 200
    assert download.content == generated.content
    assert report["fileName"] in download.headers["content-disposition"]

    deleted = client.delete(f"/reports/{report['_id']}")
    assert deleted.status_code == 200
    assert deleted.json() == {"success": True, "message": "Report deleted successfully"}
    assert not os.path.exists(report["report_file"])

    assert client.get(f"/reports/download/{report['_id']}").status_code == 404
    assert client.delete(f"/reports/{report['_id']}").status_code == 404


def test_download_missing_file_returns_404(client):
    """Test a record whose file vanished is reported as not found."""
    generate(client)
    report = client.get("/reports").json()["reports"][0]
    os.remove(report["report_file"])

    response = client.get(f"/reports/download/{report['_id']}")

    assert response.status_code == 404
    assert response.json()["message"] == "File not found on server"


def test_delete_with_missing_file_succeeds(client):
    """Test deleting a report whose file is already gone still removes the record."""
    generate(client)
    report = client.get("/reports").json()["reports"][0]
    os.remove(report["report_file"])

    response = client.delete(f"/reports/{report['_id']}")

    assert response.status_code == 200
    assert client.get("/reports").json()["total"] == 0


def test_regeneration_keeps_stale_record(client):
    """Test regenerating the same key leaves two records in history."""
    generate(client)
    generate(client)

    listing = client.get("/reports", params={"employeeName": "jane", "month": "March", "year": 2024}).json()

    assert listing["total"] == 2


def test_list_reports_pagination(client, db):
    """Test page 2 of 23 records with limit 20."""
    base = datetime(2024, 1, 1)
    for i in range(23):
        db.add(
            Report(
                employee_name="Jane Doe",
                month="March",
                year=2024,
                report_file=f"/tmp/r{i}.docx",
                file_name=f"r{i}.docx",
                created_at=base + timedelta(minutes=i),
            )
        )
    db.commit()

    body = client.get("/reports", params={"page": 2, "limit": 20}).json()

    assert body["count"] == 3
    assert body["total"] == 23
    assert body["page"] == 2
    assert body["totalPages"] == 2
    assert [r["fileName"] for r in body["reports"]] == ["r2.docx", "r1.docx", "r0.docx"]


def test_list_reports_year_filter_reads_leading_integer(client):
    """Test the year filter takes leading digits and ignores trailing text."""
    generate(client)
    generate(client, employeeName="John Roe", year="2023")

    leading = client.get("/reports", params={"year": "2024abc"})
    assert leading.status_code == 200
    assert [r["employeeName"] for r in leading.json()["reports"]] == ["Jane Doe"]

    unparsable = client.get("/reports", params={"year": "abc"})
    assert unparsable.status_code == 200
    assert unparsable.json()["total"] == 0

    assert client.get("/reports", params={"year": ""}).json()["total"] == 2


def test_list_reports_rejects_bad_page(client):
    """Test page numbers start at 1."""
    assert client.get("/reports", params={"page": 0}).status_code == 422


def test_report_stats(client):
    """Test statistics endpoint shape."""
    generate(client)
    generate(client, employeeName="John Roe")

    body = client.get("/reports/stats").json()

    assert body["success"] is True
    stats = body["statistics"]
    assert stats["totalReports"] == 2
    assert stats["totalEmployees"] == 2
    assert len(stats["recentReports"]) == 2
    assert {s["_id"] for s in stats["employeeStats"]} == {"Jane Doe", "John Roe"}


def test_inspect_uploaded_template(client):
    """Test inspecting an uploaded template counts distinct tags."""
    upload = make_template("{{employeeName}}", "{{month}}", "{{month}}")

    response = client.post("/inspect-template", files={"template": ("t.docx", upload, DOCX_MEDIA_TYPE)})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["tags"] == ["employeeName", "month"]
    assert body["tagCount"] == 2
    assert body["preview"].startswith("{{employeeName}}")


def test_inspect_falls_back_to_bundled_template(client):
    """Test inspection without upload uses the bundled template."""
    body = client.post("/inspect-template").json()

    assert body["success"] is True
    assert "tasks" in body["tags"]
    assert body["tagCount"] == 5


def test_inspect_invalid_template_returns_400(client):
    """Test inspection failures are 400 with details."""
    response = client.post(
        "/inspect-template",
        files={"template": ("t.docx", make_template("{{ broken + }}"), DOCX_MEDIA_TYPE)},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["details"][0]["tag"] == "{{ broken + }}"


def test_static_uploads_are_served(client, upload_dir):
    """Test stored reports are reachable under /uploads."""
    generate(client)
    report = client.get("/reports").json()["reports"][0]
    relative = os.path.relpath(report["report_file"], str(upload_dir)).replace(os.sep, "/")

    response = client.get(f"/uploads/{relative}")

    assert response.status_code == 200


def test_chats_paginate(client, db):
    """Test chat pagination endpoint with exclusion and search."""
    base = datetime(2024, 1, 1)
    for i in range(7):
        db.add(Chat(chat_id=f"c-{i}", name=f"Chat {i}", messagesss="...", created_at=base + timedelta(minutes=i)))
    db.commit()

    first = client.post("/chats/paginate", json={}).json()
    assert [c["id"] for c in first["data"]] == ["c-0", "c-1", "c-2", "c-3", "c-4"]
    assert first["totalInDB"] == 7
    assert first["totalMatching"] == 7
    assert first["hasMore"] is True

    seen = [c["_id"] for c in first["data"]]
    second = client.post("/chats/paginate", json={"excludeIds": seen, "per_page": 5}).json()
    assert [c["id"] for c in second["data"]] == ["c-5", "c-6"]
    assert second["hasMore"] is False

    searched = client.post("/chats/paginate", json={"search": "chat 6"}).json()
    assert [c["name"] for c in searched["data"]] == ["Chat 6"]
    assert searched["totalMatching"] == 1
