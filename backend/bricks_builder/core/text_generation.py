"""
Text generation through an external CLI

The CLI is treated as an opaque function: prompt in (stdin), text out (stdout).
It is slow and fallible, so every call is bounded by a timeout and tied to the
caller's CancellationToken; the child process is killed when either fires.
"""
import asyncio
import hashlib
import time
from abc import ABC, abstractmethod
from typing import List, Optional

from bricks_builder.core.cache import TTLCache
from bricks_builder.core.cancellation import CancellationToken
from bricks_builder.core.config import Settings, get_settings
from bricks_builder.core.logging_config import LoggingConfig
from bricks_builder.core.metrics import (text_generation_duration_seconds,
                                         text_generation_requests_total)

logger = LoggingConfig.get_logger(__name__)

MAX_STDERR_IN_ERROR = 500


class TextGenerationError(Exception):
    """The text generation call failed or produced unusable output"""
    pass


class TextGenerationTimeout(TextGenerationError):
    """The text generation call did not finish in time"""
    pass


class TextGenerator(ABC):
    """Interface for anything that turns a prompt into text"""

    name: str = "text-generator"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        timeout_ms: int,
        cancellation: Optional[CancellationToken] = None
    ) -> str:
        """
        Generate text for a prompt

        Args:
            prompt: Full prompt text
            timeout_ms: Upper bound for the call in milliseconds
            cancellation: Token that aborts the call when cancelled

        Returns:
            Generated text (never empty)

        Raises:
            TextGenerationError: On any failure, TextGenerationTimeout on timeout
        """
        pass

    def discard(self, prompt: str) -> None:
        """Forget any cached response for prompt, e.g. after the caller rejected it"""
        return None


class CliTextGenerator(TextGenerator):
    """
    Runs a CLI (by default `claude -p`) with the prompt on stdin

    Example:
        >>> generator = CliTextGenerator(["claude", "-p"])
        >>> text = await generator.generate("Return {}", timeout_ms=20000)
    """

    def __init__(
        self,
        command: List[str],
        cache: Optional[TTLCache[str]] = None,
        name: str = "cli"
    ):
        if not command:
            raise ValueError("command must not be empty")
        self.command = list(command)
        self.cache = cache
        self.name = name

    @staticmethod
    def _get_cache_key(prompt: str) -> str:
        return hashlib.sha256(prompt.encode("utf-8")).hexdigest()

    def discard(self, prompt: str) -> None:
        if self.cache is not None:
            self.cache.delete(self._get_cache_key(prompt))

    @staticmethod
    def _terminate(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    async def generate(
        self,
        prompt: str,
        timeout_ms: int,
        cancellation: Optional[CancellationToken] = None
    ) -> str:
        if timeout_ms <= 0:
            raise TextGenerationTimeout("No time left for text generation")
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        cache_key = self._get_cache_key(prompt)
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                text_generation_requests_total.labels(generator=self.name, status="cached").inc()
                logger.debug(f"Text generation cache hit for {self.name}")
                return cached

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            text_generation_requests_total.labels(generator=self.name, status="error").inc()
            raise TextGenerationError(f"Could not start '{self.command[0]}': {e}") from e

        unregister = (
            cancellation.register(lambda: self._terminate(process))
            if cancellation is not None else (lambda: None)
        )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(prompt.encode("utf-8")),
                timeout=timeout_ms / 1000
            )
        except asyncio.TimeoutError as e:
            self._terminate(process)
            await process.wait()
            text_generation_requests_total.labels(generator=self.name, status="timeout").inc()
            logger.warning(
                f"Text generation exceeded {timeout_ms}ms, process killed",
                extra={"generator": self.name, "pid": process.pid}
            )
            raise TextGenerationTimeout(f"Text generation exceeded {timeout_ms}ms") from e
        except asyncio.CancelledError:
            self._terminate(process)
            await asyncio.shield(process.wait())
            text_generation_requests_total.labels(generator=self.name, status="cancelled").inc()
            logger.info(
                "Text generation cancelled, process killed",
                extra={"generator": self.name, "pid": process.pid}
            )
            raise
        finally:
            unregister()
            text_generation_duration_seconds.labels(generator=self.name).observe(
                time.monotonic() - start_time
            )

        if cancellation is not None and cancellation.cancelled:
            text_generation_requests_total.labels(generator=self.name, status="cancelled").inc()
            raise TextGenerationError(f"Text generation cancelled: {cancellation.reason}")

        if process.returncode != 0:
            text_generation_requests_total.labels(generator=self.name, status="error").inc()
            detail = stderr.decode("utf-8", errors="replace").strip()[:MAX_STDERR_IN_ERROR]
            raise TextGenerationError(
                f"'{self.command[0]}' exited with code {process.returncode}: {detail or 'no stderr'}"
            )

        text = stdout.decode("utf-8", errors="replace").strip()
        if not text:
            text_generation_requests_total.labels(generator=self.name, status="error").inc()
            raise TextGenerationError(f"'{self.command[0]}' returned no output")

        if self.cache is not None:
            self.cache.set(cache_key, text)

        text_generation_requests_total.labels(generator=self.name, status="success").inc()
        logger.info(
            f"Text generation completed in {int((time.monotonic() - start_time) * 1000)}ms",
            extra={"generator": self.name, "response_length": len(text)}
        )
        return text


def build_text_generator(
    settings: Optional[Settings] = None,
    cache: Optional[TTLCache[str]] = None
) -> CliTextGenerator:
    """Create the CLI text generator described by settings"""
    settings = settings or get_settings()
    return CliTextGenerator(command=settings.text_generation_argv, cache=cache, name="claude-cli")
