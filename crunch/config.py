# crunch/config.py
"""
Search-session configuration.

Defaults live on the dataclass; CrunchConfig.from_env() overlays CRUNCH_*
environment variables. Integer values accept 0x/0b prefixes and underscores.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Mapping, Optional
import os

from .contracts import UserCredentials
from .partitioner import BLOCK_SIZE, DEFAULT_INITIAL
from .stepper import StepperConfig
from .worker_entry import PROGRESS_EVERY

RUN_MODES = ("process", "inline")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_int(raw: str, name: str) -> int:
    try:
        return int(raw.strip(), 0)
    except ValueError as exc:
        raise ValueError(f"{name}: not an integer: {raw!r}") from exc


def parse_bool(raw: str, name: str) -> bool:
    v = raw.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise ValueError(f"{name}: not a boolean: {raw!r}")


@dataclass
class CrunchConfig:
    initial: int = DEFAULT_INITIAL
    block_size: int = BLOCK_SIZE
    workers: Optional[int] = None          # None = one per logical CPU
    progress_every: int = PROGRESS_EVERY
    ignore_trivial_cycle: bool = True
    max_iterations: Optional[int] = None
    run_mode: str = "process"
    packet_ttl_s: Optional[float] = None
    user_id: Optional[str] = None
    user_secret_version: Optional[str] = None
    user_secret: Optional[str] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.run_mode not in RUN_MODES:
            raise ValueError(f"run_mode must be one of {RUN_MODES}, got {self.run_mode!r}")
        if self.progress_every < 1:
            raise ValueError("progress_every must be >= 1")
        if self.max_iterations is not None and self.max_iterations < 1:
            raise ValueError("max_iterations must be >= 1 (unset for no limit)")

    @property
    def stepper(self) -> StepperConfig:
        return StepperConfig(
            ignore_trivial_cycle=self.ignore_trivial_cycle,
            max_iterations=self.max_iterations,
        )

    @property
    def packet_ttl(self) -> Optional[timedelta]:
        if self.packet_ttl_s is None:
            return None
        return timedelta(seconds=self.packet_ttl_s)

    @property
    def credentials(self) -> Optional[UserCredentials]:
        """Set only when all three credential fields are present."""
        if not (self.user_id and self.user_secret_version and self.user_secret):
            return None
        return UserCredentials(self.user_id, self.user_secret_version, self.user_secret)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "CrunchConfig":
        env = os.environ if env is None else env
        kw = {}
        for key, attr in (
            ("CRUNCH_INITIAL", "initial"),
            ("CRUNCH_BLOCK_SIZE", "block_size"),
            ("CRUNCH_WORKERS", "workers"),
            ("CRUNCH_PROGRESS_EVERY", "progress_every"),
            ("CRUNCH_MAX_ITERATIONS", "max_iterations"),
        ):
            if env.get(key):
                kw[attr] = parse_int(env[key], key)
        if env.get("CRUNCH_IGNORE_TRIVIAL_CYCLE"):
            kw["ignore_trivial_cycle"] = parse_bool(
                env["CRUNCH_IGNORE_TRIVIAL_CYCLE"], "CRUNCH_IGNORE_TRIVIAL_CYCLE")
        if env.get("CRUNCH_RUN_MODE"):
            kw["run_mode"] = env["CRUNCH_RUN_MODE"].strip().lower()
        if env.get("CRUNCH_PACKET_TTL_S"):
            try:
                kw["packet_ttl_s"] = float(env["CRUNCH_PACKET_TTL_S"])
            except ValueError as exc:
                raise ValueError("CRUNCH_PACKET_TTL_S: not a number") from exc
        for key, attr in (
            ("CRUNCH_USER_ID", "user_id"),
            ("CRUNCH_USER_SECRET_VERSION", "user_secret_version"),
            ("CRUNCH_USER_SECRET", "user_secret"),
        ):
            if env.get(key):
                kw[attr] = env[key]
        return cls(**kw)
