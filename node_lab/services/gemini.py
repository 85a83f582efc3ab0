import logging
from typing import List, Optional

from node_lab.services.base import InlineImage
from node_lab.services.http import request_json
from node_lab.util.errors import ProviderError

logger = logging.getLogger(__name__)

GEMINI_HOST = "https://generativelanguage.googleapis.com/v1beta"
PRO_IMAGE_MODEL = 'gemini-3-pro-image-preview'
FLASH_IMAGE_MODEL = 'gemini-2.5-flash-image'


def select_image_model(image_size: Optional[str]) -> str:
    """2K and 4K need the pro model; everything else runs on flash."""
    return PRO_IMAGE_MODEL if image_size in ('2K', '4K') else FLASH_IMAGE_MODEL


def build_image_request(prompt: str,
                        aspect_ratio: str,
                        image_size: str = '1K',
                        images: Optional[List[InlineImage]] = None) -> tuple[str, dict]:
    model = select_image_model(image_size)
    parts = [{'text': prompt}]
    for image in images or []:
        parts.append({'inlineData': {'mimeType': image.mime_type, 'data': image.data}})

    image_config = {'aspectRatio': aspect_ratio or '1:1'}
    if model == PRO_IMAGE_MODEL:
        image_config['imageSize'] = image_size
    return model, {
        'contents': [{'parts': parts}],
        'generationConfig': {
            'responseModalities': ['IMAGE'],
            'imageConfig': image_config,
        },
    }


def extract_inline_image(response: dict) -> str:
    """Return the first inline image part of a generateContent answer as a data URI."""
    candidates = response.get('candidates') or []
    parts = ((candidates[0] if candidates else {}).get('content') or {}).get('parts')
    if not parts:
        raise ProviderError("Image generation returned no content")
    for part in parts:
        inline = part.get('inlineData') or part.get('inline_data')
        if inline:
            mime_type = inline.get('mimeType') or inline.get('mime_type') or 'image/png'
            return InlineImage(inline['data'], mime_type).data_uri
    raise ProviderError("Image generation returned no image data")


class GeminiImageClient:
    """Native single-shot image generation over the Generative Language REST API."""

    def __init__(self, api_key: str, host: str = GEMINI_HOST):
        self.api_key = api_key
        self.host = host.rstrip('/')

    async def generate(self,
                       prompt: str,
                       aspect_ratio: str,
                       image_size: str = '1K',
                       images: Optional[List[InlineImage]] = None) -> str:
        if not self.api_key:
            raise ProviderError("Missing Google API key")
        model, body = build_image_request(prompt, aspect_ratio, image_size, images)
        logger.info("GeminiImageClient: generating with model=%s size=%s images=%d",
                    model, image_size, len(images or []))
        response = await request_json(
            'POST', f"{self.host}/models/{model}:generateContent",
            headers={'Content-Type': 'application/json', 'x-goog-api-key': self.api_key},
            json_data=body,
        )
        return extract_inline_image(response)
