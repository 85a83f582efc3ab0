"""In-memory stand-ins for the provider clients used by the tests."""
import asyncio
from io import BytesIO

from PIL import Image

from node_lab.execution import ExecutionConfig
from node_lab.lab_flow import build, create_executor
from node_lab.models.model_settings import LabSettings
from node_lab.services import Artifact, ExpertOutput, ExpertResult, InlineImage, LabServices, PollResult, PollStatus
from node_lab.services.codec import PillowImageCodec
from node_lab.util.errors import ProviderError


def png_bytes(width, height, color=(200, 30, 30)):
    buffer = BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format='PNG')
    return buffer.getvalue()


class FakeCodec(PillowImageCodec):
    """Pillow codec whose downloads come from a dict."""

    def __init__(self, images=None):
        self.images = dict(images or {})
        self.fetched = []

    async def fetch(self, url):
        self.fetched.append(url)
        if url not in self.images:
            raise ProviderError(f"404 for {url}")
        return self.images[url]

    async def fetch_inline(self, url):
        return InlineImage.from_bytes(await self.fetch(url), 'image/png')


class FakeStore:
    def __init__(self, fail_on=None):
        self.uploads = []
        self.fail_on = fail_on

    async def upload(self, source, name=None):
        await asyncio.sleep(0)
        index = len(self.uploads) + 1
        if self.fail_on is not None and index == self.fail_on:
            raise ProviderError("Upload failed")
        self.uploads.append((source, name))
        return Artifact(url=f"https://img.test/{index}.png", display_url=f"https://img.test/{index}_md.png")


class FakeExpert:
    def __init__(self, result=None, error=None, delay=0):
        self.result = result or ExpertResult(display_summary="summary", outputs=[])
        self.error = error
        self.delay = delay
        self.calls = []

    async def generate(self, prompt, system_instruction, images=None):
        self.calls.append({'prompt': prompt, 'system_instruction': system_instruction, 'images': images or []})
        for _ in range(self.delay):
            await asyncio.sleep(0)
        if self.error:
            raise self.error
        return self.result


class FakeNativeImage:
    def __init__(self):
        self.calls = []

    async def generate(self, prompt, aspect_ratio, image_size='1K', images=None):
        self.calls.append({'prompt': prompt, 'aspect_ratio': aspect_ratio, 'image_size': image_size,
                           'images': images or []})
        return InlineImage.from_bytes(png_bytes(8, 8)).data_uri


class ScriptedPoller:
    """Returns the scripted poll answers in order, repeating the last one."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.polls = []

    async def __call__(self, task_id, *args, **kwargs):
        self.polls.append(task_id)
        index = min(len(self.polls) - 1, len(self.answers) - 1)
        return self.answers[index]


class FakeGrsai:
    def __init__(self, answers=None):
        self.draws = []
        self.videos = []
        self.poll = ScriptedPoller(answers or [done("https://cdn.test/result.png")])

    async def submit_draw(self, model, prompt, aspect_ratio, image_size='1K', urls=None):
        self.draws.append({'model': model, 'prompt': prompt, 'aspect_ratio': aspect_ratio,
                           'image_size': image_size, 'urls': urls or []})
        return 'grsai-task'

    async def submit_video(self, model, prompt, aspect_ratio, urls=None, resolution=None, duration_seconds=None):
        self.videos.append({'model': model, 'prompt': prompt, 'aspect_ratio': aspect_ratio, 'urls': urls or [],
                            'resolution': resolution, 'duration_seconds': duration_seconds})
        return 'grsai-video'


class FakeComfly:
    def __init__(self, answers=None, sync_url="https://comfly.test/sync.png"):
        self.tasks = []
        self.draws = []
        self.videos = []
        self.sync_url = sync_url
        self.poll_image_task = ScriptedPoller(answers or [done("https://comfly.test/task.png")])
        self.poll_video = ScriptedPoller(answers or [done("https://comfly.test/video.mp4")])

    async def submit_draw_task(self, model, prompt, aspect_ratio, image_size='1K', urls=None):
        self.tasks.append({'model': model, 'prompt': prompt, 'aspect_ratio': aspect_ratio,
                           'image_size': image_size, 'urls': urls or []})
        return 'comfly-task'

    async def draw(self, model, prompt, aspect_ratio, image_size='1K', urls=None):
        self.draws.append({'model': model, 'prompt': prompt, 'urls': urls or []})
        return self.sync_url

    async def submit_video(self, model, prompt, aspect_ratio, urls=None, enable_upsample=False):
        self.videos.append({'model': model, 'prompt': prompt, 'aspect_ratio': aspect_ratio,
                            'urls': urls or [], 'enable_upsample': enable_upsample})
        return 'comfly-video'


def running(progress, text=None):
    return PollResult(status=PollStatus.RUNNING, progress=progress, status_text=text)


def done(url):
    return PollResult(status=PollStatus.SUCCEEDED, progress=100, result_url=url)


def failed(reason):
    return PollResult(status=PollStatus.FAILED, failure_reason=reason)


def outputs(n):
    return ExpertResult(
        display_summary=f"{n} ideas",
        outputs=[ExpertOutput(title=f"Idea {i}", prompt=f"prompt {i}") for i in range(1, n + 1)],
    )


class Clock:
    """Manual clock; every call advances by ``step`` seconds."""

    def __init__(self, start=1000.0, step=0.25):
        self.now = start
        self.step = step

    def __call__(self):
        value = self.now
        self.now += self.step
        return value


class SleepRecorder:
    def __init__(self):
        self.intervals = []

    async def __call__(self, seconds):
        self.intervals.append(seconds)
        await asyncio.sleep(0)


def make_services(**overrides):
    services = LabServices(
        expert=FakeExpert(),
        native_image=FakeNativeImage(),
        grsai=FakeGrsai(),
        comfly=FakeComfly(),
        artifacts=FakeStore(),
        codec=FakeCodec(),
    )
    for name, value in overrides.items():
        setattr(services, name, value)
    return services


def make_executor(graph, services=None, config=None, settings=None, clock=None):
    state = build(graph)
    sleep = SleepRecorder()
    executor = create_executor(
        state,
        services=services or make_services(),
        settings=settings or LabSettings(aspect_ratio='16:9'),
        config=config or ExecutionConfig(),
        sleep=sleep,
        clock=clock or Clock(),
    )
    return state, executor, sleep


def result_nodes(state, source_id):
    ids = {e.target for e in state.edges if e.source == source_id}
    return [n for n in state.nodes if n.id in ids and n.type == 'outputResult']
