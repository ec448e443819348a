"""Config loading helpers built around OmegaConf."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from omegaconf import OmegaConf

from ..errors import InvalidConfiguration


def load_config_any(path: str, overrides: Optional[List[str]] = None) -> Any:
    """Load a YAML/OmegaConf file, apply dotlist overrides and resolve it."""
    cfg = OmegaConf.load(path)
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
    return OmegaConf.to_container(cfg, resolve=True)


def load_config_dict(path: str, overrides: Optional[List[str]] = None) -> Dict[str, Any]:
    """Load a config file and guarantee a `dict` result."""
    cfg = load_config_any(path, overrides)
    if not isinstance(cfg, dict):
        raise InvalidConfiguration(f"Expected mapping at {path}, got {type(cfg)}")
    return cfg
