import logging
from typing import Any, Dict, List, Optional

from node_lab.services.base import PollResult, PollStatus, parse_progress
from node_lab.services.http import bearer, request_json
from node_lab.util.const import SORA_MODEL
from node_lab.util.errors import ProviderError

logger = logging.getLogger(__name__)

GRSAI_HOST = "https://grsai.dakka.com.cn"


def prepare_veo_payload(model: str,
                        prompt: str,
                        urls: List[str],
                        aspect_ratio: str,
                        resolution: Optional[str] = None,
                        duration_seconds: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the GRSAI video request body.

    One url is a first frame, two are first and last frame, three or more
    are a reference set of at most three. ``sora-2`` has its own body.
    """
    if model == SORA_MODEL:
        return {
            'model': model,
            'prompt': prompt,
            'aspectRatio': aspect_ratio,
            'url': urls[0] if urls else "",
            'duration': 10,
            'size': "small",
            'webhook': "-1",
            'shutProgress': False,
        }

    payload = {
        'model': model,
        'aspectRatio': aspect_ratio,
        'firstFrameUrl': "",
        'lastFrameUrl': "",
        'urls': None,
        'prompt': prompt,
        'resolution': resolution or "720p",
        'durationSeconds': int(duration_seconds) if duration_seconds else 6,
        'personGeneration': "allow_adult" if urls else "allow_all",
        'webhook': "-1",
        'shutProgress': False,
        'cdn': "",
    }
    if len(urls) == 1:
        payload['firstFrameUrl'] = urls[0]
    elif len(urls) == 2:
        payload['firstFrameUrl'] = urls[0]
        payload['lastFrameUrl'] = urls[1]
    elif len(urls) >= 3:
        payload['urls'] = urls[:3]
    return payload


def normalize_grsai_result(data: Optional[Dict[str, Any]], failed_message: str = 'Generation Failed') -> PollResult:
    """
    Map the ``data`` object of /v1/draw/result onto a PollResult.

    GRSAI reports no failure reason, so ``failed_message`` is used instead.
    Progress is reported as a bare number and shown as "NN%".
    """
    data = data or {}
    status = str(data.get('status') or '').lower()
    url = data.get('url')
    if not url:
        results = data.get('results') or []
        if results and isinstance(results[0], dict):
            url = results[0].get('url')

    if status == 'failed':
        return PollResult(status=PollStatus.FAILED, failure_reason=failed_message, raw=data)
    if status == 'succeeded':
        return PollResult(status=PollStatus.SUCCEEDED, progress=100, result_url=url or None, raw=data)
    return PollResult(status=PollStatus.RUNNING, progress=parse_progress(data.get('progress')), raw=data)


class GrsaiClient:
    """GRSAI draw/video task API."""

    def __init__(self, api_key: str, host: str = GRSAI_HOST):
        self.api_key = api_key
        self.host = host.rstrip('/')

    def _headers(self) -> dict:
        if not self.api_key:
            raise ProviderError("Missing GRSAI API key")
        return {'Content-Type': 'application/json', **bearer(self.api_key)}

    async def _submit(self, endpoint: str, payload: dict) -> str:
        response = await request_json('POST', f"{self.host}{endpoint}", headers=self._headers(), json_data=payload)
        if response.get('code') != 0:
            raise ProviderError(response.get('msg') or f"GRSAI request to {endpoint} was rejected")
        task_id = (response.get('data') or {}).get('id')
        if not task_id:
            raise ProviderError("GRSAI response did not include a task id")
        return task_id

    async def submit_draw(self,
                          model: str,
                          prompt: str,
                          aspect_ratio: str,
                          image_size: str = '1K',
                          urls: Optional[List[str]] = None) -> str:
        payload = {
            'model': model,
            'prompt': prompt,
            'aspectRatio': aspect_ratio,
            'imageSize': image_size,
            'urls': urls or [],
            'webHook': "-1",
            'shutProgress': False,
        }
        return await self._submit('/v1/draw/nano-banana', payload)

    async def submit_video(self,
                           model: str,
                           prompt: str,
                           aspect_ratio: str,
                           urls: Optional[List[str]] = None,
                           resolution: Optional[str] = None,
                           duration_seconds: Optional[str] = None) -> str:
        payload = prepare_veo_payload(model, prompt, urls or [], aspect_ratio, resolution, duration_seconds)
        endpoint = '/v1/video/sora-video' if model == SORA_MODEL else '/v1/video/veo'
        return await self._submit(endpoint, payload)

    async def poll(self, task_id: str, failed_message: str = 'Generation Failed') -> PollResult:
        response = await request_json(
            'POST', f"{self.host}/v1/draw/result", headers=self._headers(), json_data={'id': task_id}
        )
        return normalize_grsai_result(response.get('data'), failed_message)
