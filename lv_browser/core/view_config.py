from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

DEFAULT_SIZE = (800.0, 400.0)

# (violin fill, violin stroke, point fill) per variable slot
DEFAULT_PALETTE: Tuple[Tuple[str, str, str], ...] = (
    ("#cfe7ff", "#79b1ff", "#4A90E2"),
    ("#f3e8ff", "#b889ff", "#9b59b6"),
    ("#ffe9c9", "#ffb86a", "#F5A623"),
    ("#d9f2e6", "#6cc49a", "#27ae60"),
    ("#fde2e2", "#f08a8a", "#e74c3c"),
)


@dataclass(frozen=True)
class Size:
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class VariableSpec:
    """
    One variable drawn side by side inside every category band.
    Colours left as None are filled from DEFAULT_PALETTE by position.
    """
    name: str
    label: Optional[str] = None
    fill_color: Optional[str] = None
    stroke_color: Optional[str] = None
    point_color: Optional[str] = None

    @property
    def display_label(self) -> str:
        return self.label or self.name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> VariableSpec:
        return cls(
            name=data["name"],
            label=data.get("label"),
            fill_color=data.get("fill_color") or data.get("fillColor"),
            stroke_color=data.get("stroke_color") or data.get("strokeColor"),
            point_color=data.get("point_color") or data.get("pointColor"),
        )


def resolve_variables(variables: Sequence[VariableSpec | str]) -> List[VariableSpec]:
    """
    Normalise names/specs to VariableSpecs with every colour set.
    """
    resolved: List[VariableSpec] = []
    for i, var in enumerate(variables):
        spec = var if isinstance(var, VariableSpec) else VariableSpec(name=str(var))
        fill, stroke, point = DEFAULT_PALETTE[i % len(DEFAULT_PALETTE)]
        resolved.append(
            VariableSpec(
                name=spec.name,
                label=spec.label,
                fill_color=spec.fill_color or fill,
                stroke_color=spec.stroke_color or stroke,
                point_color=spec.point_color or point,
            )
        )
    return resolved


@dataclass(frozen=True)
class ViewConfig:
    """
    Arguments to BaseView.create().

    - size: container size in pixels; zero/missing dimensions fall back to DEFAULT_SIZE
    - shared_domain: y-domain shared by every view of the session
    - variables: variables rendered per category band (violin views)
    - seed: jitter seed; None draws fresh jitter for points not already drawn
    """
    size: Size = field(default_factory=Size)
    shared_domain: Optional[Tuple[float, float]] = None
    variables: Tuple[VariableSpec, ...] = ()
    seed: Optional[int] = None

    def resolved_size(self) -> Tuple[float, float]:
        width = self.size.width or DEFAULT_SIZE[0]
        height = self.size.height or DEFAULT_SIZE[1]
        return float(width), float(height)
