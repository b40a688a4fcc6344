"""
Discovery of the models installed in the local ollama runtime.
"""
import asyncio
import logging
import os
import shutil
import subprocess
import sys
from typing import Callable, Optional, Sequence

from neuratalk.core.errors import BackendUnavailable, NoModelsInstalled

logger = logging.getLogger(__name__)

Runner = Callable[[Sequence[str], float], str]


def _fallback_paths(platform: str) -> list[str]:
    home = os.path.expanduser("~")
    if platform == "darwin":
        return [
            "/usr/local/bin/ollama",
            "/opt/homebrew/bin/ollama",
            os.path.join(home, "go", "bin", "ollama"),
        ]
    if platform.startswith("win"):
        return [
            "C:\\Program Files\\Ollama\\ollama.exe",
            "C:\\Program Files (x86)\\Ollama\\ollama.exe",
            os.path.join(os.environ.get("LOCALAPPDATA", ""), "ollama", "ollama.exe"),
        ]
    if platform.startswith("linux"):
        return [
            "/usr/bin/ollama",
            "/usr/local/bin/ollama",
            os.path.join(home, "go", "bin", "ollama"),
        ]
    return []


def run_command(args: Sequence[str], timeout: float) -> str:
    """Run the backend binary and return its stdout, raising on failure."""
    completed = subprocess.run(
        list(args),
        capture_output=True,
        text=True,
        timeout=timeout,
        check=True,
    )
    return completed.stdout


def parse_model_listing(output: str) -> list[str]:
    """
    Pull model identifiers out of `ollama list` output.

    Lines before the `NAME` header are ignored; after it, the first column of
    every non-empty line is a model identifier.
    """
    names: list[str] = []
    start_parsing = False
    for line in output.splitlines():
        if line.startswith("NAME"):
            start_parsing = True
            continue
        if start_parsing:
            columns = line.split()
            if columns:
                names.append(columns[0])
    return names


class ModelCatalog:
    def __init__(
        self,
        binary: Optional[str] = None,
        runner: Runner = run_command,
        timeout: float = 10.0,
        platform: str = sys.platform,
    ):
        self.binary = binary
        self.runner = runner
        self.timeout = timeout
        self.platform = platform

    def locate_binary(self) -> str:
        if self.binary:
            if os.path.exists(self.binary):
                return self.binary
            found = shutil.which(self.binary)
            if found:
                return found
            raise BackendUnavailable(f"ollama not found at {self.binary}")

        found = shutil.which("ollama")
        if found:
            return found

        for path in _fallback_paths(self.platform):
            if os.path.exists(path):
                return path

        raise BackendUnavailable("ollama not found in PATH or common installation locations")

    def _run(self, binary: str, command: str, failure: str) -> str:
        try:
            return self.runner([binary, command], self.timeout)
        except (OSError, subprocess.SubprocessError) as exc:
            logger.warning("%s: %s", failure, exc)
            raise BackendUnavailable(f"{failure}: {exc}") from exc

    def list_models(self) -> list[str]:
        binary = self.locate_binary()

        # `ps` talks to the server, so it fails fast when the service is down
        self._run(binary, "ps", "ollama service is not running")
        output = self._run(binary, "list", "failed to list models")

        names = parse_model_listing(output)
        if not names:
            raise NoModelsInstalled()

        logger.info("Available models: %s", names)
        return names

    async def alist_models(self) -> list[str]:
        return await asyncio.to_thread(self.list_models)
