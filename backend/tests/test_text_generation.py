"""
Tests for the CLI text generator, run against small Python child processes
"""
import asyncio
import sys
import time

import pytest

from bricks_builder.core.cache import TTLCache
from bricks_builder.core.cancellation import (CancellationToken,
                                              OperationCancelled)
from bricks_builder.core.config import Settings
from bricks_builder.core.text_generation import (CliTextGenerator,
                                                 TextGenerationError,
                                                 TextGenerationTimeout,
                                                 build_text_generator)


def python_command(code):
    return [sys.executable, "-c", code]


ECHO_STDIN = python_command("import sys; sys.stdout.write('reply: ' + sys.stdin.read())")
SLEEP_FOREVER = python_command("import time; time.sleep(30)")


class TestCliTextGenerator:

    @pytest.mark.asyncio
    async def test_prompt_on_stdin(self):
        generator = CliTextGenerator(ECHO_STDIN)
        assert await generator.generate("hello", timeout_ms=10000) == "reply: hello"

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        generator = CliTextGenerator(python_command(
            "import sys; sys.stderr.write('model unavailable'); sys.exit(3)"
        ))
        with pytest.raises(TextGenerationError, match="exited with code 3: model unavailable"):
            await generator.generate("hello", timeout_ms=10000)

    @pytest.mark.asyncio
    async def test_empty_output(self):
        generator = CliTextGenerator(python_command("pass"))
        with pytest.raises(TextGenerationError, match="returned no output"):
            await generator.generate("hello", timeout_ms=10000)

    @pytest.mark.asyncio
    async def test_missing_binary(self):
        generator = CliTextGenerator(["definitely-not-a-real-binary-3f9a"])
        with pytest.raises(TextGenerationError, match="Could not start"):
            await generator.generate("hello", timeout_ms=10000)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        generator = CliTextGenerator(SLEEP_FOREVER)

        start = time.monotonic()
        with pytest.raises(TextGenerationTimeout):
            await generator.generate("hello", timeout_ms=200)
        assert time.monotonic() - start < 5

    @pytest.mark.asyncio
    async def test_no_time_left(self):
        with pytest.raises(TextGenerationTimeout):
            await CliTextGenerator(ECHO_STDIN).generate("hello", timeout_ms=0)

    @pytest.mark.asyncio
    async def test_token_cancellation_kills_process(self):
        generator = CliTextGenerator(SLEEP_FOREVER)
        token = CancellationToken()

        async def cancel_soon():
            await asyncio.sleep(0.2)
            token.cancel("run abandoned")

        start = time.monotonic()
        with pytest.raises(TextGenerationError, match="cancelled: run abandoned"):
            await asyncio.gather(generator.generate("hello", timeout_ms=20000, cancellation=token), cancel_soon())
        assert time.monotonic() - start < 5

    @pytest.mark.asyncio
    async def test_already_cancelled_token(self):
        token = CancellationToken()
        token.cancel("too late")
        with pytest.raises(OperationCancelled):
            await CliTextGenerator(ECHO_STDIN).generate("hello", timeout_ms=1000, cancellation=token)

    @pytest.mark.asyncio
    async def test_cache_hit_skips_process(self):
        cache = TTLCache(ttl_seconds=60)
        generator = CliTextGenerator(ECHO_STDIN, cache=cache)

        first = await generator.generate("hello", timeout_ms=10000)
        # A broken command proves the second call never spawns a process
        generator.command = ["definitely-not-a-real-binary-3f9a"]
        second = await generator.generate("hello", timeout_ms=10000)

        assert first == second == "reply: hello"
        assert cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_discard_forgets_cached_reply(self):
        cache = TTLCache(ttl_seconds=60)
        generator = CliTextGenerator(ECHO_STDIN, cache=cache)

        await generator.generate("hello", timeout_ms=10000)
        assert len(cache) == 1

        generator.discard("hello")
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_reaps_process(self, monkeypatch):
        started = []
        create_subprocess_exec = asyncio.create_subprocess_exec

        async def recording_exec(*args, **kwargs):
            process = await create_subprocess_exec(*args, **kwargs)
            started.append(process)
            return process

        monkeypatch.setattr(asyncio, "create_subprocess_exec", recording_exec)

        task = asyncio.ensure_future(CliTextGenerator(SLEEP_FOREVER).generate("hello", timeout_ms=20000))
        while not started:
            await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        assert started[0].returncode is not None

    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            CliTextGenerator([])


class TestBuildTextGenerator:

    def test_uses_settings_command(self):
        settings = Settings(text_generation_command="claude -p --output-format text")
        generator = build_text_generator(settings)

        assert generator.command == ["claude", "-p", "--output-format", "text"]
        assert generator.name == "claude-cli"

    def test_blank_command_rejected(self):
        with pytest.raises(ValueError):
            Settings(text_generation_command="   ")
