"""Google Cloud Speech-to-Text and Text-to-Speech over REST with API keys."""

import logging
import time
from typing import Optional

import requests

from pitch_ai import config
from pitch_ai.exceptions import ExternalServiceError, TranscriptionTimeout

logger = logging.getLogger(__name__)

STT_BASE_URL = "https://speech.googleapis.com/v1"
TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"

VALID_STT_FIELDS = {
    "encoding",
    "sampleRateHertz",
    "languageCode",
    "audioChannelCount",
    "enableAutomaticPunctuation",
    "maxAlternatives",
    "profanityFilter",
    "enableSeparateRecognitionPerChannel",
    "speechContexts",
    "useEnhanced",
}

LONG_RUNNING_DEFAULTS = {
    "encoding": "WEBM_OPUS",
    "sampleRateHertz": 16000,
    "languageCode": "en-US",
}

# Browser WebM/Opus recordings are 48 kHz
CHUNK_DEFAULTS = {
    "encoding": "WEBM_OPUS",
    "sampleRateHertz": 48000,
    "languageCode": "en-US",
    "enableAutomaticPunctuation": True,
    "maxAlternatives": 1,
}

MAX_SYNC_SECONDS = 60

TTS_VOICE = {"languageCode": "en-US", "name": "en-US-Wavenet-D", "ssmlGender": "MALE"}
INTERVIEW_SPEAKING_RATE = 4
TEST_GREETING = "Hello! Welcome to your interview. My name is John, and I’ll be asking you a few questions today."


def build_stt_config(defaults: dict, user_config: Optional[dict]) -> dict:
    """Merge user config over defaults, keeping only fields Google accepts."""
    merged = {**defaults, **(user_config or {})}
    return {k: v for k, v in merged.items() if k in VALID_STT_FIELDS and v is not None}


def estimate_audio_bytes(audio_content: str) -> float:
    return len(audio_content) * 3 / 4


def estimate_duration_seconds(audio_content: str) -> float:
    # 48 kHz, 16-bit samples
    return estimate_audio_bytes(audio_content) / (48000 * 2)


def _stt_key() -> str:
    if not config.GOOGLE_STT_API_KEY:
        raise RuntimeError("Google Speech-to-Text API key not found in environment variables")
    return config.GOOGLE_STT_API_KEY


def _tts_key() -> str:
    if not config.GOOGLE_TTS_API_KEY:
        raise RuntimeError("Google TTS API key not found in environment variables")
    return config.GOOGLE_TTS_API_KEY


def _google_post(url: str, key: str, body: dict) -> dict:
    try:
        resp = requests.post(url, params={"key": key}, json=body, timeout=30)
    except requests.RequestException as e:
        raise ExternalServiceError(f"Request to {url} failed: {e}") from e
    if resp.status_code >= 400:
        try:
            message = resp.json().get("error", {}).get("message")
        except ValueError:
            message = None
        logger.error("Google API error %s: %s", resp.status_code, resp.text[:500])
        raise ExternalServiceError(message or f"HTTP {resp.status_code}", status_code=resp.status_code)
    return resp.json()


def _summarize_results(results: list[dict]) -> tuple[str, float]:
    transcripts = [r["alternatives"][0].get("transcript", "") for r in results if r.get("alternatives")]
    confidences = [
        r["alternatives"][0]["confidence"]
        for r in results
        if r.get("alternatives") and r["alternatives"][0].get("confidence") is not None
    ]
    transcript = " ".join(transcripts).strip()
    confidence = sum(confidences) / len(confidences) if confidences else 0
    return transcript, confidence


def transcribe_long_running(audio_content: str, user_config: Optional[dict] = None) -> dict:
    """Start a long-running recognition and poll it until done.

    Raises TranscriptionTimeout when the operation is still running after
    STT_MAX_POLLS polls.
    """
    key = _stt_key()
    logger.info("Audio size estimate: %.0f bytes", estimate_audio_bytes(audio_content))
    body = {
        "config": build_stt_config(LONG_RUNNING_DEFAULTS, user_config),
        "audio": {"content": audio_content},
    }
    started = _google_post(f"{STT_BASE_URL}/speech:longrunningrecognize", key, body)
    operation_name = started.get("name")
    logger.info("Long running operation started: %s", operation_name)

    final = None
    done = False
    for attempt in range(1, config.STT_MAX_POLLS + 1):
        time.sleep(config.STT_POLL_INTERVAL)
        try:
            resp = requests.get(f"{STT_BASE_URL}/operations/{operation_name}", params={"key": key}, timeout=30)
            resp.raise_for_status()
            operation = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Error polling operation %s (attempt %d): %s", operation_name, attempt, e)
            continue
        logger.debug("Polling attempt %d, operation done: %s", attempt, operation.get("done"))
        if operation.get("done"):
            done = True
            if operation.get("error"):
                raise ExternalServiceError(
                    f"Long running operation failed: {operation['error'].get('message', 'unknown error')}"
                )
            final = operation.get("response") or {}
            break

    if not done:
        raise TranscriptionTimeout(operation_name)

    results = final.get("results") or []
    if not results:
        return {
            "message": "No speech detected",
            "transcript": "",
            "confidence": 0,
            "results": [],
            "operationName": operation_name,
        }
    transcript, confidence = _summarize_results(results)
    return {
        "message": "Long running transcription successful",
        "transcript": transcript,
        "confidence": confidence,
        "results": results,
        "operationName": operation_name,
    }


def transcribe_chunk(audio_content: str, user_config: Optional[dict] = None, chunk_index=None) -> dict:
    """Synchronous recognition for a chunk of at most one minute."""
    key = _stt_key()
    stt_config = build_stt_config(CHUNK_DEFAULTS, user_config)
    logger.info("Processing chunk %s with config %s", chunk_index if chunk_index is not None else "unknown", stt_config)

    data = _google_post(
        f"{STT_BASE_URL}/speech:recognize",
        key,
        {"config": stt_config, "audio": {"content": audio_content}},
    )
    results = data.get("results") or []
    if not results or not results[0].get("alternatives"):
        return {
            "message": "No speech detected in chunk",
            "transcript": "",
            "confidence": 0,
            "chunkIndex": chunk_index,
            "results": [],
        }
    best = results[0]["alternatives"][0]
    return {
        "message": "Chunk transcription successful",
        "transcript": best.get("transcript") or "",
        "confidence": best.get("confidence") or 0,
        "chunkIndex": chunk_index,
        "results": results,
    }


def synthesize(text: str, speaking_rate: Optional[float] = None) -> str:
    """Return base64 MP3 audio for text."""
    key = _tts_key()
    audio_config = {"audioEncoding": "MP3"}
    if speaking_rate is not None:
        audio_config["speakingRate"] = speaking_rate
    data = _google_post(TTS_URL, key, {
        "input": {"text": text},
        "voice": TTS_VOICE,
        "audioConfig": audio_config,
    })
    audio = data.get("audioContent")
    if not audio:
        logger.error("No audioContent in TTS response: %s", data)
        raise ExternalServiceError("No audio returned from TTS API")
    return audio


def introduction_text(position: str, company: str, interviewer_name: str) -> str:
    return (
        f"Hi! Welcome to your interview for the {position} position at {company}. "
        f"My name is {interviewer_name}, and I'll be asking you a few questions today. "
        "Let's begin with some behavioral questions to better understand your experience "
        "and approach to different situations."
    )
