"""Repository materialization at a pinned commit."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager, Iterable, Iterator, Protocol, Sequence

from ..logging import get_logger
from ..models import RepoEntry


class MaterializeError(RuntimeError):
    """Raised when a repository cannot be fetched at the requested commit."""


class Materializer(Protocol):
    """Capability to expose a repository tree exactly as of one commit.

    The yielded directory is only valid inside the ``with`` block and is
    released when the block exits, whatever the outcome.
    """

    def materialize(self, entry: RepoEntry) -> ContextManager[Path]:
        ...


class GitMaterializer:
    """Clones the full repository and checks out the pinned commit."""

    def __init__(
        self,
        *,
        executable: str = "git",
        timeout: float | None = 600.0,
        github_token: str | None = None,
        scratch_dir: Path | str | None = None,
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.github_token = github_token or None
        self.scratch_dir = Path(scratch_dir) if scratch_dir is not None else None
        self._runner = runner or self._default_runner
        self.logger = get_logger("git")

    @contextmanager
    def materialize(self, entry: RepoEntry) -> Iterator[Path]:
        workdir = Path(
            tempfile.mkdtemp(
                prefix="repo-",
                dir=str(self.scratch_dir) if self.scratch_dir is not None else None,
            )
        )
        try:
            self.logger.debug("Cloning %s into %s", entry.repo_url, workdir)
            self._git(
                ["clone", "--quiet", self._clone_url(entry.repo_url), str(workdir)],
                cwd=workdir.parent,
                step="git clone",
                target=entry.repo_url,
            )
            self.logger.debug("Checking out %s", entry.commit_sha)
            self._git(
                ["checkout", "--quiet", entry.commit_sha],
                cwd=workdir,
                step="git checkout",
                target=entry.commit_sha,
            )
            yield workdir
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    # ------------------------------------------------------------------
    # Internals

    def _git(self, args: Sequence[str], *, cwd: Path, step: str, target: str) -> str:
        command = [self.executable, *args]
        try:
            return self._runner(command, cwd=cwd, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise MaterializeError(
                f"{step} error: unable to locate '{self.executable}' executable"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise MaterializeError(
                f"{step} error: timed out after {exc.timeout} seconds on {target}"
            ) from exc
        except subprocess.CalledProcessError as exc:
            output = _combined_output(exc)
            action = "clone" if step == "git clone" else "checkout commit"
            message = (
                f"{step} error: failed to {action} {target}: "
                f"exit status {exc.returncode} (output: {output})"
            )
            raise MaterializeError(self._redact(message)) from exc

    def _clone_url(self, repo_url: str) -> str:
        if self.github_token and repo_url.startswith("https://github.com/"):
            return repo_url.replace(
                "https://", f"https://x-access-token:{self.github_token}@", 1
            )
        return repo_url

    def _redact(self, message: str) -> str:
        if self.github_token:
            return message.replace(self.github_token, "***")
        return message

    @staticmethod
    def _default_runner(
        args: Iterable[str],
        *,
        cwd: Path,
        timeout: float | None = None,
    ) -> str:
        # git must never wait on a credential prompt.
        env = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
            stdin=subprocess.DEVNULL,
            env=env,
            timeout=timeout,
        )
        return completed.stdout


def _combined_output(exc: subprocess.CalledProcessError) -> str:
    parts = [exc.stdout, exc.stderr]
    text = "".join(part for part in parts if isinstance(part, str))
    return text.strip()


__all__ = ["GitMaterializer", "MaterializeError", "Materializer"]
