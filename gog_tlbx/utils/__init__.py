from .logging import configure_logging
from .paths import get_data_dir, get_dataset_path


__all__ = [
    "configure_logging",
    "get_data_dir",
    "get_dataset_path",
]
