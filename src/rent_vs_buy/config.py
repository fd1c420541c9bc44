from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from .schemas import SimulationParams

PARAMS_ENV_VAR = "RENT_VS_BUY_PARAMS"


def default_params_path() -> Optional[str]:
    return os.environ.get(PARAMS_ENV_VAR) or None


def load_params(path: Optional[Union[str, Path]] = None) -> SimulationParams:
    """
    Read a JSON parameter file and validate it.

    Keys missing from the file keep their defaults. Without a path the
    defaults are returned as-is.
    """
    if path is None:
        return SimulationParams().validate()

    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not parse parameter file '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Parameter file '{path}' must contain a JSON object")
    return SimulationParams.from_dict(data).validate()
