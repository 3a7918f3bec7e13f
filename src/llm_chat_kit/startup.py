from __future__ import annotations

"""Pre-flight checks run before the server starts serving."""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Literal, Mapping, TextIO

from .providers import ProviderRegistry, get_registry

Status = Literal["ok", "warn", "error"]


@dataclass
class StartupCheck:
    name: str
    status: Status
    message: str


@dataclass
class StartupResult:
    can_start: bool
    checks: List[StartupCheck] = field(default_factory=list)


def check_providers(registry: ProviderRegistry, env: Mapping[str, str]) -> List[StartupCheck]:
    """One ``ok`` line per enabled provider; providers without keys are left out."""
    checks: List[StartupCheck] = []
    for name in registry.enabled_providers(env):
        config = registry.get_config(name)
        if config.key_name is None:
            message = f"Available at {config.base_url}"
        else:
            message = "API key configured"
        checks.append(StartupCheck(name=name.capitalize(), status="ok", message=message))
    return checks


def run_startup_checks(
    registry: ProviderRegistry | None = None,
    env: Mapping[str, str] | None = None,
    cwd: str | Path | None = None,
    file_exists: Callable[[Path], bool] | None = None,
) -> StartupResult:
    registry = registry or get_registry()
    env = os.environ if env is None else env
    cwd = Path(cwd or os.getcwd())
    file_exists = file_exists or Path.exists

    checks: List[StartupCheck] = []
    can_start = True

    # Keys may come from the process environment: a missing .env warns but never blocks startup
    if file_exists(cwd / ".env"):
        checks.append(StartupCheck(".env file", "ok", "Found"))
    else:
        checks.append(StartupCheck(".env file", "warn", "No .env file found; using process environment only"))

    checks.extend(check_providers(registry, env))

    enabled = registry.enabled_providers(env)
    if not enabled:
        checks.append(
            StartupCheck(
                "Providers",
                "error",
                "No providers enabled. Add API keys to .env or ensure Ollama is configured.",
            )
        )
        can_start = False
    else:
        checks.append(StartupCheck("Providers", "ok", f"Enabled: {', '.join(enabled)}"))

    return StartupResult(can_start=can_start, checks=checks)


_ICONS = {"ok": ("\x1b[32m", "✓"), "warn": ("\x1b[33m", "!"), "error": ("\x1b[31m", "✗")}
_RESET = "\x1b[0m"


def print_startup_report(result: StartupResult, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    print("", file=out)
    print("  LLM Chat Kit - Startup Check", file=out)
    print("  " + "-" * 28, file=out)
    for check in result.checks:
        color, icon = _ICONS[check.status]
        print(f"  {color}{icon}{_RESET} {check.name}: {check.message}", file=out)
    print("", file=out)
    if not result.can_start:
        print(f"\x1b[31m✗ Cannot start server. Please fix the errors above.{_RESET}\n", file=out)
