"""Speech-to-text and text-to-speech endpoints against mocked Google REST calls."""

from unittest.mock import Mock

import pytest
import requests

from pitch_ai import config
from pitch_ai.exceptions import ExternalServiceError, TranscriptionTimeout
from pitch_ai.services import speech


def _response(payload, status_code=200):
    resp = Mock(status_code=status_code, text=str(payload))
    resp.json.return_value = payload
    return resp


@pytest.fixture
def stt_key(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_STT_API_KEY", "stt-key-1234567890")


@pytest.fixture
def tts_key(monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_TTS_API_KEY", "tts-key")


@pytest.fixture
def google(monkeypatch):
    """Mocked requests.post / requests.get used by the speech service."""
    post, get = Mock(), Mock()
    monkeypatch.setattr(speech.requests, "post", post)
    monkeypatch.setattr(speech.requests, "get", get)
    return post, get


def test_build_stt_config_filters_unknown_fields():
    cfg = speech.build_stt_config(
        speech.LONG_RUNNING_DEFAULTS,
        {"languageCode": "fr-FR", "enableSpeakerDiarization": True, "model": "latest_long", "useEnhanced": None},
    )
    assert cfg == {"encoding": "WEBM_OPUS", "sampleRateHertz": 16000, "languageCode": "fr-FR"}


def test_estimate_duration():
    # 96000 bytes of 48 kHz 16-bit audio is one second
    assert speech.estimate_duration_seconds("A" * 128000) == pytest.approx(1.0)


def test_long_running_transcription(stt_key, google):
    post, get = google
    post.return_value = _response({"name": "op-1"})
    get.side_effect = [
        requests.ConnectionError("flaky"),
        _response({"name": "op-1", "done": False}),
        _response({"name": "op-1", "done": True, "response": {"results": [
            {"alternatives": [{"transcript": "hello there", "confidence": 0.8}]},
            {"alternatives": [{"transcript": "general", "confidence": 0.6}]},
        ]}}),
    ]

    result = speech.transcribe_long_running("QUJD", {"languageCode": "en-GB"})

    assert result["transcript"] == "hello there general"
    assert result["confidence"] == pytest.approx(0.7)
    assert result["operationName"] == "op-1"
    body = post.call_args.kwargs["json"]
    assert body["config"]["languageCode"] == "en-GB"
    assert body["audio"] == {"content": "QUJD"}
    assert post.call_args.kwargs["params"] == {"key": "stt-key-1234567890"}
    assert get.call_count == 3


def test_long_running_without_speech(stt_key, google):
    post, get = google
    post.return_value = _response({"name": "op-2"})
    get.return_value = _response({"done": True, "response": {}})
    result = speech.transcribe_long_running("QUJD")
    assert result["message"] == "No speech detected"
    assert result["transcript"] == ""


def test_long_running_operation_error(stt_key, google):
    post, get = google
    post.return_value = _response({"name": "op-3"})
    get.return_value = _response({"done": True, "error": {"message": "bad audio"}})
    with pytest.raises(ExternalServiceError, match="bad audio"):
        speech.transcribe_long_running("QUJD")


def test_long_running_timeout(stt_key, google, monkeypatch):
    monkeypatch.setattr(config, "STT_MAX_POLLS", 2)
    post, get = google
    post.return_value = _response({"name": "op-4"})
    get.return_value = _response({"done": False})
    with pytest.raises(TranscriptionTimeout) as excinfo:
        speech.transcribe_long_running("QUJD")
    assert excinfo.value.operation_name == "op-4"
    assert get.call_count == 2


def test_transcribe_endpoint_timeout(client, stt_key, google, monkeypatch):
    monkeypatch.setattr(config, "STT_MAX_POLLS", 1)
    post, get = google
    post.return_value = _response({"name": "op-5"})
    get.return_value = _response({"done": False})

    resp = client.post("/api/stt/transcribe", json={"audioContent": "QUJD"})

    assert resp.status_code == 408
    body = resp.json()
    assert body["message"] == "Transcription timeout - operation took too long to complete"
    assert body["operationName"] == "op-5"


def test_transcribe_endpoint_requires_audio(client):
    resp = client.post("/api/stt/transcribe", json={})
    assert resp.status_code == 400


def test_transcribe_endpoint_invalid_audio(client, stt_key, google):
    post, _ = google
    post.return_value = _response({"error": {"message": "Invalid recognition config"}}, status_code=400)
    resp = client.post("/api/stt/transcribe", json={"audioContent": "QUJD"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid audio format or configuration: Invalid recognition config"


def test_transcribe_endpoint_without_key(client):
    resp = client.post("/api/stt/transcribe", json={"audioContent": "QUJD"})
    assert resp.status_code == 500
    assert "API key not found" in resp.json()["detail"]


def test_transcribe_chunk(client, stt_key, google):
    post, _ = google
    post.return_value = _response({"results": [{"alternatives": [{"transcript": "chunk text", "confidence": 0.9}]}]})

    resp = client.post("/api/stt/transcribe-chunk", json={"audioContent": "QUJD", "chunkIndex": 3})

    assert resp.status_code == 200
    body = resp.json()
    assert body["transcript"] == "chunk text"
    assert body["chunkIndex"] == 3
    assert post.call_args.kwargs["json"]["config"]["sampleRateHertz"] == 48000


def test_transcribe_chunk_without_speech(client, stt_key, google):
    post, _ = google
    post.return_value = _response({})
    body = client.post("/api/stt/transcribe-chunk", json={"audioContent": "QUJD", "chunkIndex": 0}).json()
    assert body["message"] == "No speech detected in chunk"
    assert body["chunkIndex"] == 0


def test_transcribe_chunk_too_long(client, stt_key, google, monkeypatch):
    monkeypatch.setattr(speech, "MAX_SYNC_SECONDS", 0.5)
    resp = client.post("/api/stt/transcribe-chunk", json={"audioContent": "A" * 128000, "chunkIndex": 1})
    assert resp.status_code == 400
    body = resp.json()
    assert body["message"] == "Audio chunk too long for sync API"
    assert body["chunkIndex"] == 1
    assert body["estimatedDuration"] == pytest.approx(1.0)
    google[0].assert_not_called()


def test_stt_config_test_endpoint(client, stt_key):
    body = client.get("/api/stt/test").json()
    assert body["apiKeyPresent"] is True
    assert body["apiKeyPrefix"] == "stt-key-12..."


def test_stt_config_test_endpoint_without_key(client):
    assert client.get("/api/stt/test").status_code == 500


def test_synthesize_request_shape(tts_key, google):
    post, _ = google
    post.return_value = _response({"audioContent": "bXAz"})

    assert speech.synthesize("Hello", speaking_rate=4) == "bXAz"

    body = post.call_args.kwargs["json"]
    assert body["input"] == {"text": "Hello"}
    assert body["voice"]["name"] == "en-US-Wavenet-D"
    assert body["audioConfig"] == {"audioEncoding": "MP3", "speakingRate": 4}


def test_synthesize_without_audio(tts_key, google):
    google[0].return_value = _response({})
    with pytest.raises(ExternalServiceError, match="No audio returned from TTS API"):
        speech.synthesize("Hello")


def test_introduction(client, tts_key, google):
    google[0].return_value = _response({"audioContent": "bXAz"})
    resp = client.post(
        "/api/tts/introduction",
        json={"position": "Backend Engineer", "company": "Acme", "interviewerName": "John"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["audioContent"] == "bXAz"
    assert body["introText"].startswith("Hi! Welcome to your interview for the Backend Engineer position at Acme.")
    assert "My name is John" in body["introText"]


def test_introduction_requires_all_fields(client, tts_key):
    resp = client.post("/api/tts/introduction", json={"position": "Backend Engineer", "company": "Acme"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Missing required parameters: position, company, interviewerName"


def test_question_audio(client, tts_key, google):
    google[0].return_value = _response({"audioContent": "bXAz"})
    body = client.post("/api/tts/question", json={"question": "Why Acme?"}).json()
    assert body == {"message": "Question TTS synthesis successful", "audioContent": "bXAz", "question": "Why Acme?"}


def test_question_audio_rejects_non_string(client, tts_key):
    resp = client.post("/api/tts/question", json={"question": 42})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Question must be a non-empty string"


def test_tts_test_without_key(client):
    resp = client.get("/api/tts/test")
    assert resp.status_code == 500
    assert "Google TTS API key not found" in resp.json()["detail"]
