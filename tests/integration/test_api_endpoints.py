"""Integration tests for REST API endpoints against the fake backend."""

# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


async def test_health(async_client):
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ---------------------------------------------------------------------------
# Recording lifecycle
# ---------------------------------------------------------------------------


async def test_recording_lifecycle(async_client, fake_backend, mic, background_done):
    """POST start → POST stop → background pipeline → GET record: Completed."""
    fake_backend.task_statuses = [
        {"task_id": "t1", "status": "SUCCESS", "result": {"final_audio_key": "audio/s1_final.wav"}}
    ]
    fake_backend.transcription_statuses = [
        {"state": "SUCCESS", "result": {"transcription_file_url": "https://files.test/s1.txt"}}
    ]

    # Start
    resp = await async_client.post("/api/v1/recordings/start")
    assert resp.status_code == 200
    body = resp.json()
    session_id = body["session_id"]
    name = body["record"]["name"]
    assert name == f"{session_id}_recording.mp3"
    assert body["record"]["status"] == "Pending"
    assert body["record"]["message"] == "Recording..."

    # Stop
    await mic.drained()
    resp = await async_client.post("/api/v1/recordings/stop")
    assert resp.status_code == 202
    await background_done()

    resp = await async_client.get(f"/api/v1/recordings/{name}")
    assert resp.status_code == 200
    record = resp.json()
    assert record["status"] == "Completed"
    assert record["audio_link"] == "audio/s1_final.wav"
    assert record["transcript_link"] == "https://files.test/s1.txt"
    assert set(fake_backend.chunks[session_id]) == {0, 1}

    # List
    resp = await async_client.get("/api/v1/recordings")
    assert [r["name"] for r in resp.json()] == [name]


async def test_double_start_conflicts(async_client):
    await async_client.post("/api/v1/recordings/start")

    resp = await async_client.post("/api/v1/recordings/start")

    assert resp.status_code == 409
    assert resp.json()["code"] == "RECORDING_ALREADY_ACTIVE"


async def test_stop_without_recording(async_client):
    resp = await async_client.post("/api/v1/recordings/stop")

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "RECORDING_NOT_ACTIVE"
    assert "timestamp" in body


async def test_second_stop_conflicts(async_client, fake_backend, mic, background_done):
    fake_backend.task_statuses = [
        {"task_id": "t1", "status": "SUCCESS", "result": {"final_audio_key": "audio/s1_final.wav"}}
    ]
    await async_client.post("/api/v1/recordings/start")
    await mic.drained()

    first = await async_client.post("/api/v1/recordings/stop")
    second = await async_client.post("/api/v1/recordings/stop")
    await background_done()

    assert first.status_code == 202
    assert second.status_code == 409
    assert second.json()["code"] == "RECORDING_NOT_ACTIVE"
    assert len(fake_backend.calls("/finish-recording")) == 1


async def test_failed_finalize_shows_on_record(async_client, fake_backend, mic, background_done):
    fake_backend.finish_status = 500

    resp = await async_client.post("/api/v1/recordings/start")
    name = resp.json()["record"]["name"]
    await mic.drained()
    await async_client.post("/api/v1/recordings/stop")
    await background_done()

    record = (await async_client.get(f"/api/v1/recordings/{name}")).json()
    assert record["status"] == "Failed"
    assert "finalize" in record["message"]


async def test_unknown_record(async_client):
    resp = await async_client.get("/api/v1/recordings/missing.mp3")

    assert resp.status_code == 404
    assert resp.json()["code"] == "RECORD_NOT_FOUND"


# ---------------------------------------------------------------------------
# Single-file upload
# ---------------------------------------------------------------------------


async def test_upload_audio(async_client, fake_backend, background_done):
    fake_backend.transcription_statuses = [
        {"state": "SUCCESS", "result": {"transcription_file_url": "https://files.test/meeting.txt"}}
    ]

    resp = await async_client.post(
        "/api/v1/recordings/upload",
        files={"file": ("meeting.mp3", b"ID3fake", "audio/mpeg")},
    )
    assert resp.status_code == 202
    assert resp.json()["status"] == "Pending"
    await background_done()

    record = (await async_client.get("/api/v1/recordings/meeting.mp3")).json()
    assert record["status"] == "Completed"
    assert record["transcript_link"] == "https://files.test/meeting.txt"
    assert b"ID3fake" in fake_backend.calls("/upload")[0].content


async def test_upload_requires_file(async_client):
    resp = await async_client.post("/api/v1/recordings/upload")

    assert resp.status_code == 422
    assert resp.json()["code"] == "VALIDATION_ERROR"


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


async def test_attach_summary(async_client, store):
    store.add("meeting.mp3", status="Completed")

    resp = await async_client.post(
        "/api/v1/recordings/meeting.mp3/summary", json={"s3_key": "audio/meeting.mp3"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["summary"] == "Short summary"
    assert body["status"] == "Completed"


async def test_attach_summary_unknown_record(async_client):
    resp = await async_client.post(
        "/api/v1/recordings/nope.mp3/summary", json={"s3_key": "audio/nope.mp3"}
    )

    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Stored-file catalog
# ---------------------------------------------------------------------------


async def test_file_groups(async_client, fake_backend):
    fake_backend.files = [
        {"Key": "audio/s1_final.wav", "URL": "https://files.test/audio/s1_final.wav"},
        {"Key": "s1_final_transcription.txt"},
        {"Key": "Resumen_s1_final.txt"},
    ]

    resp = await async_client.get("/api/v1/files/groups")

    assert resp.status_code == 200
    (group,) = resp.json()
    assert group["artifact_id"] == "s1_final"
    assert group["audio"]["Key"] == "audio/s1_final.wav"
    assert group["transcript"]["Key"] == "s1_final_transcription.txt"
    assert group["summary"]["Key"] == "Resumen_s1_final.txt"


async def test_file_groups_backend_down(async_client, fake_backend):
    fake_backend.files_status = 500

    resp = await async_client.get("/api/v1/files/groups")

    assert resp.status_code == 502
    assert resp.json()["code"] == "CATALOG_QUERY_ERROR"
    assert "context" not in resp.json()
