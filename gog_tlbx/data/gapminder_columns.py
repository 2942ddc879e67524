"""Column definitions for the Gapminder dataset."""

from .base_columns import BaseColumn, ColumnKind, ColumnMetadata


class GapminderColumn(BaseColumn):
    """Column names for the [Gapminder](https://www.gapminder.org/data/) excerpt used in the tutorial chapters.

    Columns:
    - ``country``: str - Country name
    - ``continent``: str - Continent the country belongs to
    - ``year``: int - Year of observation (every five years, 1952-2007)
    - ``life_exp``: float - Life expectancy at birth in years
    - ``pop``: int - Population
    - ``gdp_percap``: float - GDP per capita (US$, inflation-adjusted)
    """

    # Identifiers
    COUNTRY = "country"
    """Country name."""
    CONTINENT = "continent"
    """Continent the country belongs to."""
    YEAR = "year"
    """Year of observation."""

    # Measurements
    LIFE_EXP = "life_exp"
    """Life expectancy at birth in years."""
    POP = "pop"
    """Population."""
    GDP_PERCAP = "gdp_percap"
    """GDP per capita (US$, inflation-adjusted)."""

    def metadata(self) -> ColumnMetadata:
        return _COLUMN_METADATA_GAPMINDER[self]

    @classmethod
    def identifier_columns(cls) -> list[str]:
        """Get identifier column names.

        Returns:
            List of identifier column names (country, continent, year).
        """
        return [cls.COUNTRY, cls.CONTINENT, cls.YEAR]


_COLUMN_METADATA_GAPMINDER: dict[GapminderColumn, ColumnMetadata] = {
    GapminderColumn.COUNTRY: ColumnMetadata(
        original_name="country",
        cleaned_name="country",
        kind=ColumnKind.CATEGORICAL,
        pretty_name="Country",
    ),
    GapminderColumn.CONTINENT: ColumnMetadata(
        original_name="continent",
        cleaned_name="continent",
        kind=ColumnKind.CATEGORICAL,
        pretty_name="Continent",
    ),
    # year is spaced every five years; treated as a continuous axis like in the line plots
    GapminderColumn.YEAR: ColumnMetadata(
        original_name="year",
        cleaned_name="year",
        kind=ColumnKind.CONTINUOUS,
        pretty_name="Year",
    ),
    GapminderColumn.LIFE_EXP: ColumnMetadata(
        original_name="lifeExp",
        cleaned_name="life_exp",
        kind=ColumnKind.CONTINUOUS,
        pretty_name="Life Expectancy (years)",
    ),
    GapminderColumn.POP: ColumnMetadata(
        original_name="pop",
        cleaned_name="pop",
        kind=ColumnKind.CONTINUOUS,
        pretty_name="Population",
    ),
    GapminderColumn.GDP_PERCAP: ColumnMetadata(
        original_name="gdpPercap",
        cleaned_name="gdp_percap",
        kind=ColumnKind.CONTINUOUS,
        pretty_name="GDP per Capita (USD)",
    ),
}
