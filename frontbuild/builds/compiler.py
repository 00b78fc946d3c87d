"""Boundary to the external bundler.

This module handles:
- The ``Compiler`` protocol: ``run(config, callback)`` with a completion
  callback receiving either a transport error or compiler statistics
- Waiting for exactly one completion per run (``compile_once``)
- ``SubprocessCompiler``, which hands the assembled configuration to a
  bundler driver command as JSON and parses the statistics it prints
"""

from __future__ import annotations

import json
import logging
import shlex
import subprocess
import tempfile
from collections.abc import Callable
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

BundleConfig = dict[str, Any]


class CompilerTransportError(Exception):
    """Raised when the bundler could not be run or did not report stats."""

    def __init__(self, message: str, code: str = "compiler_error") -> None:
        super().__init__(message)
        self.code = code


class CompilerStats(BaseModel):
    """Statistics of one bundler run.

    Bundlers report messages either as plain strings or as objects with a
    ``message`` field; both are accepted and stored as strings.

    Attributes:
        errors: Error messages in report order.
        warnings: Warning messages in report order.
        hash: Compilation hash, if reported.
        time: Compilation time in milliseconds, if reported.
        assets: Emitted asset names, if reported.
    """

    model_config = ConfigDict(extra="ignore")

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    hash: str | None = None
    time: int | None = None
    assets: list[str] = Field(default_factory=list)

    @field_validator("errors", "warnings", mode="before")
    @classmethod
    def coerce_messages(cls, v: Any) -> Any:
        """Accept ``{"message": ...}`` objects alongside strings."""
        if not isinstance(v, list):
            return v
        return [
            item.get("message", json.dumps(item)) if isinstance(item, dict) else item
            for item in v
        ]

    @field_validator("assets", mode="before")
    @classmethod
    def coerce_assets(cls, v: Any) -> Any:
        if not isinstance(v, list):
            return v
        return [item.get("name", "") if isinstance(item, dict) else item for item in v]


CompileCallback = Callable[[BaseException | None, CompilerStats | None], None]


class Compiler(Protocol):
    """An external bundler."""

    def run(self, config: BundleConfig, callback: CompileCallback) -> None:
        """Compile ``config`` and call ``callback`` once when done."""


@dataclass
class CompileResult:
    """Completion of one compiler run: exactly one of the fields is set."""

    error: BaseException | None = None
    stats: CompilerStats | None = None


def compile_once(compiler: Compiler, config: BundleConfig) -> CompileResult:
    """Run ``compiler`` and block until its single completion arrives.

    Completions after the first are ignored. No retry is attempted.

    Args:
        compiler: Compiler to run.
        config: Assembled bundler configuration.

    Returns:
        CompileResult holding the transport error or the statistics.
    """
    future: Future[CompileResult] = Future()

    def _on_done(error: BaseException | None, stats: CompilerStats | None) -> None:
        try:
            future.set_result(CompileResult(error=error, stats=stats))
        except InvalidStateError:
            logger.warning("Ignoring repeated completion from compiler")

    try:
        compiler.run(config, _on_done)
    except Exception as e:
        # A compiler that raises instead of reporting still completes the run
        _on_done(e, None)
    return future.result()


def to_jsonable(value: Any) -> Any:
    """Convert an assembled configuration into JSON-compatible data."""
    if isinstance(value, BaseModel):
        return to_jsonable(value.model_dump(mode="json", by_alias=True))
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    return value


class SubprocessCompiler:
    """Compiler that delegates to a bundler driver command.

    The driver is invoked as ``<command> --config <file> --json`` and must
    print the run's statistics as a JSON object on stdout. Its exit code
    is logged but does not decide the outcome: a failed compilation still
    prints statistics.
    """

    def __init__(
        self,
        command: str,
        cwd: Path | None = None,
        keep_config: bool = False,
    ) -> None:
        self.command = shlex.split(command)
        self.cwd = cwd
        self.keep_config = keep_config

    def _write_config(self, config: BundleConfig) -> Path:
        payload = json.dumps(to_jsonable(config), indent=2)
        with tempfile.NamedTemporaryFile(
            "w",
            prefix="frontbuild-",
            suffix=".json",
            delete=False,
            encoding="utf-8",
        ) as f:
            f.write(payload)
            return Path(f.name)

    def run(self, config: BundleConfig, callback: CompileCallback) -> None:
        config_path = self._write_config(config)
        cmd = [*self.command, "--config", str(config_path), "--json"]
        logger.info("Executing bundler: %s", shlex.join(cmd))

        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            callback(CompilerTransportError(f"Failed to execute bundler: {e}"), None)
            return
        finally:
            if not self.keep_config:
                config_path.unlink(missing_ok=True)
            else:
                logger.info("Bundler configuration kept at %s", config_path)

        if result.returncode != 0:
            logger.debug("Bundler exited with code %d", result.returncode)
        if result.stderr:
            logger.debug("Bundler stderr: %s", result.stderr.strip())

        try:
            stats = CompilerStats.model_validate_json(result.stdout)
        except ValidationError as e:
            message = (
                f"Bundler did not report statistics (exit code {result.returncode})"
            )
            if result.stderr:
                message = f"{message}: {result.stderr.strip()}"
            callback(CompilerTransportError(message), None)
            logger.debug("Unparsable bundler output: %s", e)
            return

        callback(None, stats)


__all__ = [
    "BundleConfig",
    "CompileCallback",
    "CompileResult",
    "Compiler",
    "CompilerStats",
    "CompilerTransportError",
    "SubprocessCompiler",
    "compile_once",
    "to_jsonable",
]
