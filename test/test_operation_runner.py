import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from fakes import ScriptedPoller, SleepRecorder, done, failed, running
from node_lab.execution import OperationRunner, OperationState
from node_lab.services import PollResult, PollStatus, parse_progress
from node_lab.util.errors import OperationFailed


async def submit_ok():
    return "task-42"


class TestParseProgress:

    @pytest.mark.parametrize("value, expected", [
        (None, 0),
        (45, 45),
        (45.9, 45),
        ("45%", 45),
        ("  7 %", 7),
        ("100%", 100),
        ("150%", 100),
        (-3, 0),
        ("pending", 0),
        (True, 0),
    ])
    def test_values(self, value, expected):
        assert parse_progress(value) == expected


class TestOperationRunner:

    def setup_method(self):
        self.reports = []
        self.sleep = SleepRecorder()

    def runner(self, interval=3, max_attempts=None):
        return OperationRunner(
            interval=interval,
            report=lambda progress, message: self.reports.append((progress, message)),
            sleep=self.sleep,
            max_attempts=max_attempts,
        )

    @pytest.mark.asyncio
    async def test_polls_until_done(self):
        poll = ScriptedPoller([running(10), running(55, "55%"), done("https://cdn.test/out.png")])
        runner = self.runner()
        result = await runner.run(submit_ok, poll)

        assert result.result_url == "https://cdn.test/out.png"
        assert runner.state == OperationState.DONE
        assert runner.task_id == "task-42"
        assert poll.polls == ["task-42"] * 3
        assert self.reports == [(10, "10%"), (55, "55%")]
        assert self.sleep.intervals == [3, 3]

    @pytest.mark.asyncio
    async def test_failure_reason_is_verbatim(self):
        poll = ScriptedPoller([running(20), failed("content policy violation")])
        runner = self.runner()
        with pytest.raises(OperationFailed) as exc_info:
            await runner.run(submit_ok, poll)
        assert str(exc_info.value) == "content policy violation"
        assert exc_info.value.task_id == "task-42"
        assert runner.state == OperationState.FAILED

    @pytest.mark.asyncio
    async def test_failure_without_reason(self):
        runner = self.runner()
        with pytest.raises(OperationFailed, match="Generation Failed"):
            await runner.run(submit_ok, ScriptedPoller([PollResult(status=PollStatus.FAILED)]))

    @pytest.mark.asyncio
    async def test_result_url_ends_polling_without_success_status(self):
        poll = ScriptedPoller([PollResult(status=PollStatus.RUNNING, progress=90, result_url="https://x.test/v.mp4")])
        result = await self.runner().run(submit_ok, poll)
        assert result.result_url == "https://x.test/v.mp4"
        assert self.sleep.intervals == []

    @pytest.mark.asyncio
    async def test_success_without_url_is_returned_to_caller(self):
        result = await self.runner().run(submit_ok, ScriptedPoller([PollResult(status=PollStatus.SUCCEEDED)]))
        assert result.result_url is None

    @pytest.mark.asyncio
    async def test_max_attempts_gives_up(self):
        poll = ScriptedPoller([running(1)])
        runner = self.runner(interval=4, max_attempts=5)
        with pytest.raises(OperationFailed, match="Gave up after 5 polls"):
            await runner.run(submit_ok, poll)
        assert len(poll.polls) == 5
        assert self.sleep.intervals == [4, 4, 4, 4]

    @pytest.mark.asyncio
    async def test_unbounded_by_default(self):
        poll = ScriptedPoller([running(1)] * 200 + [done("https://cdn.test/late.png")])
        result = await self.runner(interval=0).run(submit_ok, poll)
        assert result.result_url == "https://cdn.test/late.png"
        assert len(poll.polls) == 201

    @pytest.mark.asyncio
    async def test_submit_error_propagates(self):
        async def submit_rejected():
            raise RuntimeError("quota exceeded")

        runner = self.runner()
        with pytest.raises(RuntimeError, match="quota exceeded"):
            await runner.run(submit_rejected, ScriptedPoller([done("x")]))
        assert runner.state == OperationState.QUEUED
