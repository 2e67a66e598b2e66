from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from lv_browser.core.exceptions import ConfigError
from lv_browser.core.view_config import Size, VariableSpec, ViewConfig


def parse_size(raw: Any, source: Any) -> Size:
    """
    Build a Size from a {"width": .., "height": ..} mapping; missing keys mean 0.

    :raises ConfigError: if either dimension is not a number.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"size in {source} must be an object, got {raw!r}")
    try:
        return Size(width=float(raw.get("width", 0.0)), height=float(raw.get("height", 0.0)))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"width/height in {source} must be numbers, got {raw!r}") from e


@dataclass
class ViewSpecConfig:
    """
    Parsed config entry for a single linked view.
    """
    raw: Dict[str, Any]
    source_path: Optional[Path]
    index: int

    @property
    def id(self) -> str:
        return self.raw.get("id", f"view_{self.index}")

    @property
    def view_type(self) -> str:
        return self.raw["view"]

    @property
    def title(self) -> Optional[str]:
        return self.raw.get("title")

    @property
    def size(self) -> Size:
        return parse_size(self.raw.get("size"), f"view '{self.id}'")

    @property
    def variables(self) -> Tuple[VariableSpec, ...]:
        out = []
        for item in self.raw.get("variables", []):
            if isinstance(item, str):
                out.append(VariableSpec(name=item))
            else:
                out.append(VariableSpec.from_dict(item))
        return tuple(out)

    @property
    def brush_mode(self) -> str:
        return self.raw.get("brush_mode", "multi")

    def view_options(self, y_attribute: str) -> Dict[str, Any]:
        """
        Keyword arguments for the view constructor.
        """
        options: Dict[str, Any] = {
            "y_attribute": self.raw.get("y_attribute", y_attribute),
            "brush_mode": self.brush_mode,
        }
        for key in ("x_attribute", "brush_axis", "show_y_axis", "band_padding"):
            if key in self.raw:
                options[key] = self.raw[key]
        return options

    @classmethod
    def from_raw(cls, raw: Dict[str, Any], source_path: Optional[Path], index: int) -> ViewSpecConfig:
        return cls(raw=raw, source_path=source_path, index=index)


@dataclass
class GlobalConfig:
    ui_title: str
    data_path: Optional[Path]
    views: List[ViewSpecConfig]
    y_attribute: str = "price"
    seed: Optional[int] = None
    shared_domain: Optional[Tuple[float, float]] = None
    default_size: Size = field(default_factory=Size)

    def view_config(self, spec: ViewSpecConfig, shared_domain: Optional[Tuple[float, float]] = None) -> ViewConfig:
        """
        ViewConfig for one view. An explicit shared_domain in global.json wins
        over the one computed from the data.
        """
        size = spec.size
        if not (size.width and size.height):
            size = Size(
                width=size.width or self.default_size.width,
                height=size.height or self.default_size.height,
            )
        return ViewConfig(
            size=size,
            shared_domain=self.shared_domain or shared_domain,
            variables=spec.variables,
            seed=self.seed,
        )
