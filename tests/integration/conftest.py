from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Callable

import pytest


REPO_ROOT = Path(__file__).resolve().parents[2]

StdioRunner = Callable[..., dict[Any, dict]]


def _run_server(settings_path: Path, requests: list[dict[str, Any] | str], *, timeout: float = 30.0) -> dict[Any, dict]:
    env = dict(os.environ)
    env["MCP_INVOKE_SETTINGS_PATH"] = str(settings_path)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT / "src"), env.get("PYTHONPATH")]))

    lines = [r if isinstance(r, str) else json.dumps(r, ensure_ascii=False) for r in requests]
    p = subprocess.run(
        [sys.executable, "-m", "mcp_invoke.entry"],
        input="\n".join(lines) + "\n",
        capture_output=True,
        text=True,
        env=env,
        cwd=str(REPO_ROOT),
        timeout=timeout,
    )
    assert p.returncode == 0, p.stderr
    out: dict[Any, dict] = {}
    for line in p.stdout.splitlines():
        if line.strip():
            obj = json.loads(line)
            out[obj["id"]] = obj
    return out


@pytest.fixture
def repo_root() -> Path:
    return REPO_ROOT


@pytest.fixture
def stdio_server() -> StdioRunner:
    """
    Run `python -m mcp_invoke.entry` over a batch of request lines and return
    the responses keyed by id (responses arrive in completion order).
    """
    return _run_server
