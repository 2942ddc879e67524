"""Test configuration for the grammar-of-graphics toolbox."""

from pathlib import Path
import sys

import matplotlib
import pandas as pd
import pytest


matplotlib.use("Agg")

# Ensure the local package is importable when the repo isn't installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


COUNTRIES = [
    ("Kenya", "Africa"),
    ("Nigeria", "Africa"),
    ("Brazil", "Americas"),
    ("Canada", "Americas"),
    ("India", "Asia"),
    ("Japan", "Asia"),
]
YEARS = [1997, 2002, 2007]


@pytest.fixture
def gapminder_df() -> pd.DataFrame:
    """Small Gapminder-shaped table: 6 countries x 3 years, 3 continents."""
    rows = []
    for i, (country, continent) in enumerate(COUNTRIES):
        for j, year in enumerate(YEARS):
            rows.append(
                {
                    "country": country,
                    "continent": continent,
                    "year": year,
                    "life_exp": 50.0 + 5 * i + 1.5 * j,
                    "pop": 1_000_000 * (i + 1) + 10_000 * j,
                    "gdp_percap": 1000.0 * (i + 1) + 250.0 * j,
                },
            )
    return pd.DataFrame(rows)


@pytest.fixture
def gapminder_view(gapminder_df: pd.DataFrame):
    """DatasetView over the Gapminder-shaped table with declared column kinds."""
    from gog_tlbx.data import DatasetView, GMCol

    return DatasetView.from_frame(
        gapminder_df,
        kinds=GMCol.kinds(),
        pretty_by_col={col.value: col.pretty_name for col in GMCol},
    )


@pytest.fixture
def gapminder_csv(tmp_path: Path) -> Path:
    """Raw CSV with the original camelCase headers and one incomplete row."""
    raw = pd.DataFrame(
        {
            "country": ["Kenya ", "Kenya", "Japan", "Japan", "Chad"],
            "continent": ["Africa", "Africa", " Asia", "Asia", "Africa"],
            "year": [2002, 2007, 2002, 2007, 2007],
            "lifeExp": [50.99, 54.11, 82.0, 82.6, None],
            "pop": [31386842, 35610177, 127065841, 127467972, 10238807],
            "gdpPercap": [1287.5, 1463.2, 28604.6, 31656.1, 1704.1],
        },
    )
    csv_path = tmp_path / "gapminder.csv"
    raw.to_csv(csv_path, index=False)
    return csv_path
