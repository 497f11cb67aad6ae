"""Settings for layout and the command line tool."""

from dataclasses import dataclass
import os
from pathlib import Path


@dataclass(frozen=True)
class LayoutConfig:
    node_width: float = 250
    node_height: float = 150
    node_sep: float = 100  # Horizontal gap between neighbouring nodes
    rank_sep: float = 100  # Vertical gap between generations

    def __post_init__(self):
        for name in ("node_width", "node_height", "node_sep", "rank_sep"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @property
    def slot_width(self) -> float:
        return self.node_width + self.node_sep

    @property
    def rank_height(self) -> float:
        return self.node_height + self.rank_sep


@dataclass(frozen=True)
class AppConfig:
    db_path: Path = Path("family_tree.db")
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Read overrides from VANSHAVALI_DB and VANSHAVALI_LOG_LEVEL."""
        return cls(
            db_path=Path(os.environ.get("VANSHAVALI_DB", cls.db_path)),
            log_level=os.environ.get("VANSHAVALI_LOG_LEVEL", cls.log_level).upper(),
        )
