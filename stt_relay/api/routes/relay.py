"""
Relay endpoints.

Handles:
- Favicon redirect (any method)
- Demo page (GET /)
- Audio transcription (POST on any path)
- 405 for every other method/path combination
"""

import base64

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, RedirectResponse

from stt_relay.core.credentials import CredentialError, parse_service_account
from stt_relay.core.speech_client import SpeechAPIError, SpeechTransportError, extract_transcript
from stt_relay.logging import get_logger, sanitize_for_log

logger = get_logger("relay")

router = APIRouter()

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

FAVICON_PATH = "/favicon.ico"

METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed. Use POST with audio data."
MISSING_CREDENTIALS_MESSAGE = "Missing service credentials"
NO_AUDIO_MESSAGE = "No audio data provided"

DEMO_PAGE_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Speech-to-Text</title>
    <style>
        body { font-family: Arial, sans-serif; padding: 20px; }
        pre { background: #f0f0f0; padding: 10px; white-space: pre-wrap; }
        button { margin-left: 0.5rem; }
    </style>
</head>
<body>
    <h1>Speech-to-Text Demo</h1>
    <input type="file" id="audioFile" accept="audio/*">
    <button id="transcribeBtn" onclick="uploadAudio()">Transcribe</button>
    <pre id="result">Transcription will appear here...</pre>

    <script>
        async function uploadAudio() {
            const fileInput = document.getElementById("audioFile");
            const result = document.getElementById("result");
            const button = document.getElementById("transcribeBtn");
            const file = fileInput.files[0];
            if (!file) {
                alert("Please select an audio file");
                return;
            }

            button.disabled = true;
            result.textContent = "Transcribing...";
            try {
                const response = await fetch("", {
                    method: "POST",
                    body: file,
                    headers: { "Content-Type": file.type || "application/octet-stream" },
                });

                if (!response.ok) {
                    result.textContent = await response.text();
                    alert("Error transcribing audio");
                    return;
                }

                const { text } = await response.json();
                result.textContent = text;
            } finally {
                button.disabled = false;
            }
        }
    </script>
</body>
</html>
"""


@router.api_route(FAVICON_PATH, methods=ALL_METHODS, include_in_schema=False)
async def favicon(request: Request) -> RedirectResponse:
    """Redirect browsers to the hosted icon."""
    return RedirectResponse(url=request.app.state.config.icon_url, status_code=302)


@router.get("/", include_in_schema=False)
async def demo_page() -> HTMLResponse:
    """Serve the upload-and-transcribe demo page."""
    return HTMLResponse(content=DEMO_PAGE_HTML)


@router.api_route("/{path:path}", methods=ALL_METHODS)
async def relay(request: Request, path: str):
    """
    Transcribe the raw request body.

    The body is the audio file itself; its Content-Type is passed through
    unvalidated. Every request performs a fresh credential exchange.

    Returns:
        200 with {"text": ...} on success
        400 if the body is empty
        405 for any method other than POST
        500 if credentials are missing/unusable or the speech API rejects the call
        503 if the speech API cannot be reached
    """
    if request.method != "POST":
        return PlainTextResponse(METHOD_NOT_ALLOWED_MESSAGE, status_code=405)

    audio = await request.body()
    if not audio:
        return PlainTextResponse(NO_AUDIO_MESSAGE, status_code=400)

    config = request.app.state.config
    credentials_blob = config.get_service_credentials()
    if not credentials_blob:
        logger.error("Transcription requested but no service credentials are configured")
        return PlainTextResponse(MISSING_CREDENTIALS_MESSAGE, status_code=500)

    content_type = sanitize_for_log(request.headers.get("content-type", ""))
    logger.info(f"Relaying {len(audio)} bytes of audio ({content_type or 'no content type'})")

    audio_content = base64.b64encode(audio).decode("ascii")

    try:
        credentials = parse_service_account(credentials_blob)
        token = await request.app.state.token_provider.get_token(credentials)
    except CredentialError as e:
        logger.error(f"Credential exchange failed: {sanitize_for_log(str(e))}")
        return PlainTextResponse(f"Credential exchange failed: {e}", status_code=500)

    try:
        result = await request.app.state.speech_client.recognize(audio_content, token)
    except SpeechTransportError as e:
        logger.warning(f"Speech API unreachable: {sanitize_for_log(str(e))}")
        return PlainTextResponse(f"Fetch error: {e}", status_code=503)
    except SpeechAPIError as e:
        logger.warning(
            f"Speech API returned {e.status_code}: {sanitize_for_log(e.body)}"
        )
        return PlainTextResponse(f"STT API error: {e.body}", status_code=500)

    text = extract_transcript(result)
    logger.info(f"Transcription complete ({len(text)} chars)")
    return JSONResponse(content={"text": text}, headers={"Cache-Control": "no-store"})
