"""Facade for the external skeleton generator."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Protocol, Sequence

_LOGGER = logging.getLogger(__name__)

DEFAULT_COMMAND = ("ng", "generate", "library", "{module}")


@dataclass(frozen=True)
class GenerationRequest:
    """What the generator must produce: a library skeleton named *module_name*."""

    workspace: Path
    module_name: str
    project: Optional[str] = None


class Generator(Protocol):
    """Produces the base component/module skeleton for a request."""

    def generate(self, request: GenerationRequest) -> None:
        """Create the skeleton files; raise on failure."""


class CommandGenerator:
    """Runs an external command such as the Angular CLI in the workspace."""

    def __init__(self, command: Sequence[str] = DEFAULT_COMMAND, env: Mapping[str, str] | None = None) -> None:
        self.command = tuple(command)
        self.env = env

    def argv(self, request: GenerationRequest) -> List[str]:
        values = {"module": request.module_name, "project": request.project or ""}
        argv = [part.format(**values) for part in self.command]
        if request.project and not any("{project}" in part for part in self.command):
            argv.append(f"--project={request.project}")
        return argv

    def generate(self, request: GenerationRequest) -> None:
        argv = self.argv(request)
        _LOGGER.debug("Running generator: %s", " ".join(argv))
        env = {**os.environ, **self.env} if self.env else None
        subprocess.run(argv, cwd=request.workspace, env=env, check=True)


async def generate_skeleton(generator: Generator, request: GenerationRequest) -> None:
    """Invoke *generator* in a worker thread; failures propagate unchanged."""

    await asyncio.to_thread(generator.generate, request)


__all__ = ["CommandGenerator", "DEFAULT_COMMAND", "GenerationRequest", "Generator", "generate_skeleton"]
