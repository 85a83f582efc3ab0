import base64
import logging
from typing import Optional, Union

import aiohttp

from node_lab.services.base import Artifact
from node_lab.services.http import request_json
from node_lab.util.errors import ProviderError

logger = logging.getLogger(__name__)

IMGBB_UPLOAD_URL = "https://api.imgbb.com/1/upload"


def parse_upload_response(response: dict) -> Artifact:
    if not response.get('success'):
        error = response.get('error') or {}
        message = error.get('message') if isinstance(error, dict) else str(error)
        raise ProviderError(message or "Upload failed")
    data = response.get('data') or {}
    medium = data.get('medium') or {}
    return Artifact(
        url=data['url'],
        display_url=medium.get('url') or data.get('display_url') or data['url'],
    )


class ImgBBStore:
    """Re-hosts bytes, data URIs or remote URLs on imgbb."""

    def __init__(self, api_key: str, upload_url: str = IMGBB_UPLOAD_URL):
        self.api_key = api_key
        self.upload_url = upload_url

    async def upload(self, source: Union[bytes, str], name: Optional[str] = None) -> Artifact:
        if not self.api_key:
            raise ProviderError("Missing imgBB API key")

        if isinstance(source, bytes):
            image = base64.b64encode(source).decode('ascii')
        elif source.startswith('data:'):
            image = source.split(',', 1)[1]
        else:
            # imgbb fetches remote URLs itself
            image = source

        form = aiohttp.FormData()
        form.add_field('image', image)
        if name:
            form.add_field('name', name)

        logger.debug("ImgBBStore: uploading %s", name or 'image')
        response = await request_json(
            'POST', self.upload_url, data=form, params={'key': self.api_key}, raise_for_status=False
        )
        return parse_upload_response(response)
