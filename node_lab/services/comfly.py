import logging
from typing import Any, Dict, List, Optional

import aiohttp

from node_lab.services.base import PollResult, PollStatus, parse_progress
from node_lab.services.http import bearer, fetch_bytes, request_json
from node_lab.util.errors import ProviderError

logger = logging.getLogger(__name__)

COMFLY_HOST = "https://ai.comfly.chat"

COMFLY_SIZES = {
    '1:1': {'1K': '1024x1024', '2K': '1536x1536', '4K': '2048x2048'},
    '16:9': {'1K': '1280x720', '2K': '1920x1080', '4K': '2560x1440'},
    '9:16': {'1K': '720x1280', '2K': '1080x1920', '4K': '1440x2560'},
    '4:3': {'1K': '1024x768', '2K': '1440x1080', '4K': '2048x1536'},
    '3:4': {'1K': '768x1024', '2K': '1080x1440', '4K': '1536x2048'},
}

DONE_STATUSES = frozenset({'SUCCESS', 'FINISHED', 'SUCCEEDED', 'COMPLETED', 'DONE'})
IMAGE_FAILED_STATUSES = frozenset({'FAILED', 'ERROR', 'FAILURE'})
VIDEO_FAILED_STATUSES = frozenset({'FAILED', 'FAILURE'})


def map_to_comfly_size(aspect_ratio: str, image_size: Optional[str] = '1K') -> str:
    """Pixel size for an aspect ratio and size tier; unknown pairs fall back to 1:1 at 1K."""
    return COMFLY_SIZES.get(aspect_ratio, {}).get(image_size or '1K') or COMFLY_SIZES['1:1']['1K']


def _raw_status(info: Dict[str, Any]) -> str:
    return str(info.get('status') or info.get('state') or '').upper()


def _first(value):
    if isinstance(value, list):
        return value[0] if value else None
    return value


def normalize_image_task(response: Dict[str, Any]) -> PollResult:
    """
    Map a /v1/images/tasks/{id} answer onto a PollResult.

    The task info sits under ``data`` when present; its result URL is
    nested as ``data.data[0].url``.
    """
    info = response.get('data') or response
    if not isinstance(info, dict):
        info = response
    status = _raw_status(info)

    url = None
    nested = info.get('data')
    if isinstance(nested, dict):
        first = _first(nested.get('data'))
        if isinstance(first, dict):
            url = first.get('url')
    url = url or info.get('url') or info.get('result')

    if status in IMAGE_FAILED_STATUSES:
        return PollResult(status=PollStatus.FAILED, failure_reason=info.get('fail_reason') or None, raw=info)
    if status in DONE_STATUSES:
        return PollResult(status=PollStatus.SUCCEEDED, progress=100, result_url=url or None, raw=info)
    progress_text = info.get('progress') or '0%'
    return PollResult(
        status=PollStatus.RUNNING,
        progress=parse_progress(progress_text),
        result_url=url or None,
        status_text=str(progress_text),
        raw=info,
    )


def normalize_video_task(response: Dict[str, Any]) -> PollResult:
    """Map a /v2/videos/generations/{id} answer onto a PollResult."""
    status = _raw_status(response)
    data = response.get('data')
    url = None
    if isinstance(data, dict):
        url = data.get('output') or data.get('url') or _first(data.get('outputs'))

    if status in VIDEO_FAILED_STATUSES:
        return PollResult(status=PollStatus.FAILED, failure_reason=response.get('fail_reason') or None, raw=response)
    if status in DONE_STATUSES:
        return PollResult(status=PollStatus.SUCCEEDED, progress=100, result_url=url or None, raw=response)
    progress_text = response.get('progress') or '0%'
    return PollResult(
        status=PollStatus.RUNNING,
        progress=parse_progress(progress_text),
        result_url=url or None,
        status_text=str(progress_text),
        raw=response,
    )


def extract_task_id(response: Dict[str, Any]) -> Optional[str]:
    data = response.get('data') if isinstance(response.get('data'), dict) else {}
    return response.get('task_id') or data.get('task_id') or response.get('id') or data.get('id')


class ComflyClient:
    """Comfly image (sync and task) and video task API."""

    def __init__(self, api_key: str, host: str = COMFLY_HOST):
        self.api_key = api_key
        self.host = host.rstrip('/')

    def _auth(self) -> dict:
        if not self.api_key:
            raise ProviderError("Missing Comfly API key")
        return bearer(self.api_key)

    async def submit_draw_task(self,
                               model: str,
                               prompt: str,
                               aspect_ratio: str,
                               image_size: str = '1K',
                               urls: Optional[List[str]] = None) -> str:
        """
        Queue an asynchronous generation. With input images the first one is
        sent as a multipart edit; otherwise a JSON generation is queued.
        """
        size = map_to_comfly_size(aspect_ratio, image_size)
        headers = self._auth()
        if urls:
            body, mime_type = await fetch_bytes(urls[0])
            form = aiohttp.FormData()
            form.add_field('prompt', prompt)
            form.add_field('model', model)
            form.add_field('size', size)
            form.add_field('n', '1')
            form.add_field('image', body, filename='input.png', content_type=mime_type)
            response = await request_json(
                'POST', f"{self.host}/v1/images/edits", headers=headers, data=form, params={'async': 'true'}
            )
        else:
            response = await request_json(
                'POST', f"{self.host}/v1/images/generations",
                headers={'Content-Type': 'application/json', **headers},
                json_data={'prompt': prompt, 'model': model, 'size': size, 'n': 1},
                params={'async': 'true'},
            )
        task_id = extract_task_id(response)
        if not task_id:
            raise ProviderError(response.get('message') or "Comfly image task was not accepted")
        return task_id

    async def poll_image_task(self, task_id: str) -> PollResult:
        response = await request_json(
            'GET', f"{self.host}/v1/images/tasks/{task_id}",
            headers={'Content-Type': 'application/json', **self._auth()},
        )
        return normalize_image_task(response)

    async def draw(self,
                   model: str,
                   prompt: str,
                   aspect_ratio: str,
                   image_size: str = '1K',
                   urls: Optional[List[str]] = None) -> str:
        """Synchronous generation; returns the remote image URL."""
        payload = {
            'model': model,
            'prompt': prompt,
            'size': map_to_comfly_size(aspect_ratio, image_size),
            'n': 1,
        }
        if urls:
            payload['image'] = urls[0]
        response = await request_json(
            'POST', f"{self.host}/v1/images/generations",
            headers={'Content-Type': 'application/json', **self._auth()},
            json_data=payload,
        )
        if response.get('error'):
            error = response['error']
            message = error.get('message') if isinstance(error, dict) else str(error)
            raise ProviderError(message or "Comfly draw failed")
        first = _first(response.get('data'))
        url = (first.get('url') if isinstance(first, dict) else None) or response.get('url')
        if not url:
            raise ProviderError("Comfly draw returned no image URL")
        return url

    async def submit_video(self,
                           model: str,
                           prompt: str,
                           aspect_ratio: str,
                           urls: Optional[List[str]] = None,
                           enable_upsample: bool = False) -> str:
        payload = {
            'prompt': prompt,
            'model': model,
            # 1:1 is not offered for video
            'aspect_ratio': '16:9' if aspect_ratio == '1:1' else aspect_ratio,
        }
        if urls:
            payload['images'] = urls
        if enable_upsample:
            payload['enable_upsample'] = True
        response = await request_json(
            'POST', f"{self.host}/v2/videos/generations",
            headers={'Content-Type': 'application/json', **self._auth()},
            json_data=payload,
        )
        data = response.get('data') if isinstance(response.get('data'), dict) else {}
        task_id = response.get('task_id') or data.get('task_id')
        if not task_id:
            raise ProviderError(response.get('message') or "Comfly video task was not accepted")
        return task_id

    async def poll_video(self, task_id: str) -> PollResult:
        response = await request_json('GET', f"{self.host}/v2/videos/generations/{task_id}", headers=self._auth())
        return normalize_video_task(response)
