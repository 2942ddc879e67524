import os
from pathlib import Path
from typing import Literal


__all__ = ["get_data_dir", "get_dataset_path"]


_DATASET_MAP: dict[str, str] = {
    "gapminder": "gapminder.csv",
}

DATA_DIR_ENV = "GOG_TLBX_DATA_DIR"


def get_data_dir() -> Path:
    """Get the path to the data directory.

    Uses ``$GOG_TLBX_DATA_DIR`` when set, otherwise ``_data`` next to the package.

    Returns:
        Path to the data directory
    """
    override = os.environ.get(DATA_DIR_ENV)
    data_dir = Path(override).resolve() if override else (Path(__file__).parents[2] / "_data").resolve()
    if not data_dir.exists():
        raise FileNotFoundError(f"Data directory not found at {data_dir} (set {DATA_DIR_ENV} to override)")
    return data_dir


def get_dataset_path(filename: Literal["gapminder"] | str) -> Path:  # noqa: PYI051
    """Get the full path to a dataset file in the data directory.

    Args:
        filename: Key to known dataset or custom filename

    Returns:
        Full path to the dataset file relative to the data directory of the project
    """
    ds_path = get_data_dir() / _DATASET_MAP.get(filename, filename)
    if not ds_path.exists():
        raise FileNotFoundError(f"Dataset file '{filename}' not found at {ds_path}")
    return ds_path
