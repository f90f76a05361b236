"""Data models for flowchart configs pushed by the driver."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from flowcanvas.exceptions import ConfigError


class NodeKind(str, Enum):
    """Shapes a flowchart node can take."""

    START = "start"
    PROCESS = "process"
    DECISION = "decision"
    END = "end"


class FlowNode(BaseModel):
    """A single flowchart node."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    label: str
    kind: NodeKind | None = Field(
        default=None, validation_alias=AliasChoices("kind", "type")
    )


class FlowchartConfig(BaseModel):
    """Full flowchart description: nodes, edges, optional annotations and title.

    Edges are ``[from_id, to_id]`` pairs. The annotation map is read from
    ``annotations`` or, for older drivers, ``comments``. ``annotations`` stays
    ``None`` when the payload carries no map at all, which lets an update
    keep the annotations the canvas already holds.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    nodes: list[FlowNode] = Field(default_factory=list)
    edges: list[tuple[str, str]] = Field(default_factory=list)
    annotations: dict[str, str] | None = Field(
        default=None, validation_alias=AliasChoices("annotations", "comments")
    )
    title: str | None = None

    def to_wire(self) -> dict:
        """Dump to the JSON shape drivers send."""
        data: dict = {
            "nodes": [
                {"id": n.id, "label": n.label, **({"type": n.kind.value} if n.kind else {})}
                for n in self.nodes
            ],
            "edges": [list(e) for e in self.edges],
        }
        if self.annotations is not None:
            data["annotations"] = dict(self.annotations)
        if self.title is not None:
            data["title"] = self.title
        return data


def parse_flowchart(data: object) -> FlowchartConfig:
    """Validate a decoded JSON value as a flowchart config."""
    if data is None:
        return FlowchartConfig()
    if not isinstance(data, dict):
        raise ConfigError("Flowchart config must be a JSON object")
    try:
        return FlowchartConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid flowchart config: {e}") from e


def load_flowchart(
    config_json: str | None = None, config_file: str | Path | None = None
) -> FlowchartConfig:
    """Load a flowchart config from a file or a JSON string.

    The file wins when both are given and the file exists. With neither, an
    empty flowchart is returned.
    """
    raw: str | None = None
    if config_file is not None and Path(config_file).exists():
        raw = Path(config_file).read_text(encoding="utf-8")
    elif config_json:
        raw = config_json

    if raw is None:
        return FlowchartConfig()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Flowchart config is not valid JSON: {e}") from e
    return parse_flowchart(data)
