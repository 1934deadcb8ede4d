from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from rtta.bot.config import (
    BOT_TYPES,
    ConfigError,
    StrategyConfig,
    bot_type_of,
    config_to_dict,
    merge_config,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
STANDARD_BASELINE_ID = "standard"
MAX_FILE_STEM = 120


class CandidateFileError(ConfigError):
    """Raised when a candidate file cannot be read or merged."""


@dataclass
class LoadedCandidate:
    id: str
    name: str
    source: str
    bot_type: str
    config: StrategyConfig
    dimensions: List[str] = field(default_factory=list)

    def to_job_dict(self) -> Dict[str, Any]:
        """Self-contained payload that a worker can rebuild the candidate from."""
        return {
            "id": self.id,
            "name": self.name,
            "source": self.source,
            "botType": self.bot_type,
            "dimensions": list(self.dimensions),
            "config": config_to_dict(self.config),
        }

    @classmethod
    def from_job_dict(cls, data: Mapping[str, Any]) -> "LoadedCandidate":
        bot_type = str(data["botType"])
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            source=str(data["source"]),
            bot_type=bot_type,
            config=merge_config(bot_type, data["config"]),
            dimensions=list(data.get("dimensions", [])),
        )


def _is_candidate_record(payload: Any) -> bool:
    return (
        isinstance(payload, dict)
        and isinstance(payload.get("id"), int)
        and not isinstance(payload.get("id"), bool)
        and isinstance(payload.get("name"), str)
        and isinstance(payload.get("config"), dict)
    )


def parse_candidate_payload(payload: Any, source: str, fallback_id: str) -> LoadedCandidate:
    """Build a candidate from a decoded candidate file.

    A ``{id, name, config}`` record is merged over the standard config of its
    ``botType``. Any other object is taken as a partial heuristic config and
    named after ``fallback_id``.
    """
    if not isinstance(payload, dict):
        raise CandidateFileError(f"{source}: candidate file must hold a JSON object")
    try:
        if _is_candidate_record(payload):
            bot_type = payload.get("botType", "heuristic")
            if bot_type not in BOT_TYPES:
                raise CandidateFileError(f"{source}: unknown botType {bot_type!r}")
            dimensions = payload.get("dimensions") or []
            if not isinstance(dimensions, list) or not all(isinstance(item, str) for item in dimensions):
                raise CandidateFileError(f"{source}: dimensions must be a list of strings")
            return LoadedCandidate(
                id=str(payload["id"]),
                name=payload["name"],
                source=source,
                bot_type=bot_type,
                config=merge_config(bot_type, payload["config"]),
                dimensions=list(dimensions),
            )
        logger.debug("%s is not a candidate record; reading it as a raw heuristic config", source)
        return LoadedCandidate(
            id=fallback_id,
            name=fallback_id,
            source=source,
            bot_type="heuristic",
            config=merge_config("heuristic", payload),
        )
    except CandidateFileError:
        raise
    except ConfigError as exc:
        raise CandidateFileError(f"{source}: {exc}") from exc


def parse_candidate_file(path: PathLike) -> LoadedCandidate:
    source = Path(path).resolve()
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CandidateFileError(f"{source}: malformed JSON ({exc})") from exc
    except OSError as exc:
        raise CandidateFileError(f"{source}: cannot read candidate file ({exc})") from exc
    return parse_candidate_payload(payload, str(source), source.stem)


def load_baseline(path: Optional[PathLike] = None, bot_type: str = "heuristic") -> LoadedCandidate:
    """Load ``path`` or fall back to the standard config of ``bot_type``."""
    if path is not None:
        return parse_candidate_file(path)
    return LoadedCandidate(
        id=STANDARD_BASELINE_ID,
        name=f"{bot_type}-standard",
        source=STANDARD_BASELINE_ID,
        bot_type=bot_type,
        config=merge_config(bot_type, None),
    )


def list_candidate_files(directory: PathLike) -> List[Path]:
    root = Path(directory).resolve()
    if not root.is_dir():
        raise CandidateFileError(f"Candidates directory does not exist: {root}")
    return sorted(entry for entry in root.iterdir() if entry.is_file() and entry.suffix.lower() == ".json")


def candidate_record(
    candidate_id: int, name: str, config: StrategyConfig, dimensions: Optional[Sequence[str]] = None
) -> Dict[str, Any]:
    return {
        "id": candidate_id,
        "name": name,
        "botType": bot_type_of(config),
        "dimensions": list(dimensions or []),
        "config": config_to_dict(config),
    }


def write_candidate_file(
    path: PathLike,
    candidate_id: int,
    name: str,
    config: StrategyConfig,
    dimensions: Optional[Sequence[str]] = None,
) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = candidate_record(candidate_id, name, config, dimensions)
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return target


def power_set_file_name(index: int, dimensions: Sequence[str]) -> str:
    """``cfg-NNN-<ids>.json``; long id lists are replaced by a digest.

    The full dimension list always travels inside the record, so the name
    only has to be unique and short enough for the filesystem.
    """
    suffix = "__".join(dimensions) if dimensions else "baseline"
    stem = f"cfg-{index:03d}-{suffix}"
    if len(stem) > MAX_FILE_STEM:
        digest = hashlib.sha1(suffix.encode("utf-8")).hexdigest()[:12]
        stem = f"cfg-{index:03d}-{len(dimensions)}dims-{digest}"
    return f"{stem}.json"
