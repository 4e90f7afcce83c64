"""Remote image and label-text generation through the Gemini API.

This sits outside the render pipeline: it produces a source image or a text
suggestion, and every failure surfaces as a GenerationError with a message
fit for showing to the user.
"""

import io
import logging
import os
from typing import Any, Optional

from google import genai
from PIL import Image

from ..constants import IMAGE_MODEL, TEXT_MODEL, IMAGE_PROMPT_TEMPLATE, LABEL_PROMPT_TEMPLATE

log = logging.getLogger(__name__)

API_KEY_VARIABLES = ('API_KEY', 'GEMINI_API_KEY')


class GenerationError(Exception):
    """A remote generation request failed or returned nothing usable."""


def get_client() -> genai.Client:
    """Create a Gemini client from the API key in the environment."""
    for name in API_KEY_VARIABLES:
        api_key = os.environ.get(name)
        if api_key:
            return genai.Client(api_key=api_key)
    raise GenerationError("API Key not found in environment.")


def _request(client: Any, model: str, contents: Any) -> Any:
    try:
        return client.models.generate_content(model=model, contents=contents)
    except Exception as e:
        log.error("Gemini request to %s failed: %s", model, e)
        raise GenerationError(f"Generation request failed: {e}") from e


def generate_ai_image(prompt: str, client: Optional[Any] = None) -> bytes:
    """
    Generate a print-friendly illustration for a free-text prompt.

    Args:
        prompt: What to draw.
        client: Gemini client; created from the environment when omitted.

    Returns:
        Encoded image bytes (typically PNG) of the first image part.
    """
    if client is None:
        client = get_client()

    enhanced_prompt = IMAGE_PROMPT_TEMPLATE.format(prompt=prompt)
    response = _request(client, IMAGE_MODEL, enhanced_prompt)

    for candidate in response.candidates or []:
        content = candidate.content
        if content is None:
            continue
        for part in content.parts or []:
            inline = part.inline_data
            if inline is not None and inline.data:
                log.debug("Received %s image, %d bytes", inline.mime_type, len(inline.data))
                return inline.data

    log.error("Gemini image response held no image data")
    raise GenerationError("No image data found in response")


def load_generated_image(data: bytes) -> Image.Image:
    """Decode generated image bytes into a PIL Image."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except Exception as e:
        raise GenerationError(f"Generated image could not be decoded: {e}") from e
    return img


def generate_label_text(context: str, client: Optional[Any] = None) -> str:
    """Suggest a short product-label line for the given context."""
    if client is None:
        client = get_client()

    response = _request(client, TEXT_MODEL, LABEL_PROMPT_TEMPLATE.format(context=context))
    text = (response.text or '').strip()
    if not text:
        raise GenerationError("No text found in response")
    return text
