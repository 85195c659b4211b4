# classifier.py
# Image -> data URI -> Gemini -> validated {binColor, ecoFact}
import base64
import binascii
import json
import logging
from io import BytesIO

import requests
from PIL import Image, UnidentifiedImageError

from errors import InferenceContractViolation, InferenceUnavailable, InvalidInput
from models import BinColor, ClassificationRequest, ClassificationResult

logger = logging.getLogger(__name__)

PROMPT = (
    "Analyze this image of a waste item.\n\n"
    "Is the waste item 'Recyclable' (Blue Bin), 'Organic' (Green Bin), "
    "or 'Hazardous/Reject' (Red Bin)?\n\n"
    "Return ONLY the bin color and a 1-sentence eco-fact."
)

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "binColor": {
            "type": "STRING",
            "enum": BinColor.values(),
            "description": "The recommended bin color for the waste item.",
        },
        "ecoFact": {
            "type": "STRING",
            "description": "A short eco-fact related to waste disposal.",
        },
    },
    "required": ["binColor", "ecoFact"],
}

GENERIC_MIME_TYPES = ("", "application/octet-stream")


def _sniff_mime_type(raw):
    try:
        with Image.open(BytesIO(raw)) as img:
            img.verify()
            fmt = img.format
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise InvalidInput("Invalid image file: could not read image data.") from e
    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise InvalidInput(f"Invalid image file: unsupported image format {fmt}.")
    return mime


def build_request(upload, max_bytes=None):
    """Turn an uploaded file into a ClassificationRequest.

    `upload` is a werkzeug FileStorage or anything with read(); the declared
    mimetype is used when present, otherwise it is sniffed from the bytes.
    """
    if upload is None:
        raise InvalidInput("Invalid image file: No image provided.")

    raw = upload.read()
    if not raw:
        raise InvalidInput("Invalid image file: Image file cannot be empty.")
    if max_bytes and len(raw) > max_bytes:
        raise InvalidInput(
            f"Invalid image file: Image is larger than {max_bytes // (1024 * 1024)} MB."
        )

    declared = (getattr(upload, "mimetype", None) or getattr(upload, "content_type", None) or "")
    declared = declared.split(";", 1)[0].strip().lower()
    sniffed = _sniff_mime_type(raw)
    if declared in GENERIC_MIME_TYPES:
        mime = sniffed
    elif declared.startswith("image/"):
        mime = declared
    else:
        raise InvalidInput(f"Invalid image file: {declared} is not an image.")

    encoded = base64.b64encode(raw).decode("ascii")
    return ClassificationRequest(image_uri=f"data:{mime};base64,{encoded}")


def parse_result(text):
    """Validate raw model output against the {binColor, ecoFact} schema."""
    if not text or not text.strip():
        raise InferenceContractViolation("model returned an empty response")
    try:
        payload = json.loads(text)
    except ValueError as e:
        raise InferenceContractViolation(f"model output is not JSON: {text[:80]!r}") from e
    if not isinstance(payload, dict):
        raise InferenceContractViolation("model output is not a JSON object")

    bin_color = payload.get("binColor")
    eco_fact = payload.get("ecoFact")
    if bin_color not in BinColor.values():
        raise InferenceContractViolation(f"unexpected binColor {bin_color!r}")
    if not isinstance(eco_fact, str) or not eco_fact.strip():
        raise InferenceContractViolation("ecoFact missing or not a string")
    return ClassificationResult(bin_color=BinColor(bin_color), eco_fact=eco_fact.strip())


class GeminiClassifier:
    """Inference client for the Gemini generateContent endpoint.

    One call per classify(); no retries and no local state.
    """

    def __init__(self, api_key, url, timeout=30.0, session=None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.http = session or requests

    @classmethod
    def from_settings(cls, settings):
        return cls(settings.gemini_api_key, settings.gemini_url, settings.gemini_timeout)

    @property
    def available(self):
        return bool(self.api_key)

    def build_payload(self, request):
        return {
            "contents": [{
                "parts": [
                    {"text": PROMPT},
                    {"inline_data": {"mime_type": request.mime_type, "data": request.data}},
                ]
            }],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def classify(self, request):
        if not self.available:
            raise InferenceUnavailable("GEMINI_API_KEY is not configured")
        try:
            if not request.mime_type or not base64.b64decode(request.data, validate=True):
                raise InvalidInput("Invalid image file: Image file cannot be empty.")
        except (binascii.Error, IndexError, ValueError) as e:
            raise InvalidInput("Invalid image file: payload is not a base64 data URI.") from e

        try:
            r = self.http.post(
                self.url,
                params={"key": self.api_key},
                json=self.build_payload(request),
                timeout=self.timeout,
            )
            r.raise_for_status()
            body = r.json()
        except requests.RequestException as e:
            logger.error("Gemini request failed: %s", e)
            raise InferenceUnavailable(str(e)) from e
        except ValueError as e:
            logger.error("Gemini returned a non-JSON body")
            raise InferenceUnavailable("inference service returned a malformed response") from e

        text = self._candidate_text(body)
        result = parse_result(text)
        logger.info("classified image as %s", result.bin_color.value)
        return result

    @staticmethod
    def _candidate_text(body):
        if not isinstance(body, dict):
            raise InferenceContractViolation("model response is not a JSON object")
        candidates = body.get("candidates") or []
        if not candidates:
            feedback = body.get("promptFeedback")
            reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
            raise InferenceContractViolation(f"model returned no candidates (blockReason={reason})")
        if not isinstance(candidates, list) or not isinstance(candidates[0], dict):
            raise InferenceContractViolation("model candidate is not a JSON object")
        content = candidates[0].get("content") or {}
        if not isinstance(content, dict):
            raise InferenceContractViolation("model candidate content is not a JSON object")
        parts = content.get("parts") or []
        if not isinstance(parts, list):
            raise InferenceContractViolation("model candidate parts is not a list")
        texts = []
        for part in parts:
            if not isinstance(part, dict):
                raise InferenceContractViolation("model candidate part is not a JSON object")
            text = part.get("text", "")
            if not isinstance(text, str):
                raise InferenceContractViolation("model candidate part text is not a string")
            texts.append(text)
        return "".join(texts)
