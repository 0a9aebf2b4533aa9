"""Load runs from JSON or JSON Lines files.

A ``.json`` file holds a single run object, a list of run objects, or an
object with a ``runs`` list. A ``.jsonl`` file holds one run object per
line; blank lines are ignored.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

import pydantic

from dialectics.domain.model import ValidationError

from .schema import RunBundlePayload, RunPayload
from .translator import parse_run

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from dialectics.domain.model import Run

log = getLogger(__name__)

_RUN_LIST = pydantic.TypeAdapter(list[RunPayload])


def load_runs(paths: Iterable[Path]) -> tuple[Run, ...]:
    """Read every run from ``paths``, in file order."""

    runs: list[Run] = []
    for path in paths:
        loaded = load_run_file(path)
        log.info("Loaded %d runs from %s", len(loaded), path)
        runs.extend(loaded)
    return tuple(runs)


def load_run_file(path: Path) -> tuple[Run, ...]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValidationError(f"Cannot read run file {path}: {exc}") from exc

    if path.suffix.lower() == ".jsonl":
        payloads = [
            _validate(path, line_number, line)
            for line_number, line in enumerate(text.splitlines(), start=1)
            if line.strip()
        ]
        return tuple(parse_run(payload) for payload in payloads)

    try:
        raw: object = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON: {exc}") from exc
    return tuple(parse_run(payload) for payload in parse_run_document(raw, source=str(path)))


def parse_run_document(raw: object, *, source: str = "<input>") -> list[RunPayload]:
    try:
        if isinstance(raw, list):
            return _RUN_LIST.validate_python(raw)
        if isinstance(raw, dict) and "runs" in raw:
            return RunBundlePayload.model_validate(raw).runs
        return [RunPayload.model_validate(raw)]
    except pydantic.ValidationError as exc:
        raise ValidationError(f"{source}: invalid run payload: {_describe(exc)}") from exc


def _validate(path: Path, line_number: int, line: str) -> RunPayload:
    try:
        return RunPayload.model_validate_json(line)
    except pydantic.ValidationError as exc:
        raise ValidationError(
            f"{path}:{line_number}: invalid run payload: {_describe(exc)}"
        ) from exc


def _describe(exc: pydantic.ValidationError) -> str:
    problems = [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]
    return "; ".join(problems)
