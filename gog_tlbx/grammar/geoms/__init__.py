"""Geometry registry.

Provides the geometry kinds (point, jitter, line, bar, col, boxplot, histogram, text,
label) and a registry for looking them up by name.
"""

from gog_tlbx.exceptions import UnknownGeomError

from .bar import BarGeom, ColGeom
from .base import Geom, GeomContext, GeomKind
from .box import BoxplotGeom
from .histogram import HistogramGeom
from .line import LineGeom
from .point import JitterGeom, PointGeom
from .text import LabelGeom, TextGeom


# Registry of available geometries
_GEOMS: dict[str, Geom] = {
    GeomKind.POINT: PointGeom(),
    GeomKind.JITTER: JitterGeom(),
    GeomKind.LINE: LineGeom(),
    GeomKind.BAR: BarGeom(),
    GeomKind.COL: ColGeom(),
    GeomKind.BOXPLOT: BoxplotGeom(),
    GeomKind.HISTOGRAM: HistogramGeom(),
    GeomKind.TEXT: TextGeom(),
    GeomKind.LABEL: LabelGeom(),
}


def get_geom(name: str | GeomKind) -> Geom:
    """Get a geometry by name.

    Args:
        name: Geometry name (point, jitter, line, bar, col, boxplot, histogram, text, label)

    Returns:
        Geom instance

    Raises:
        UnknownGeomError: If the geometry name is not registered
    """
    geom_name = str(name).lower() if name else ""
    geom = _GEOMS.get(geom_name)
    if geom is None:
        raise UnknownGeomError(str(name), list_geoms())
    return geom


def list_geoms() -> list[str]:
    """Get a list of available geometry names."""
    return [str(kind) for kind in _GEOMS]


def list_geoms_with_descriptions() -> dict[str, str]:
    """Get all available geometries with their descriptions."""
    return {str(name): geom.get_description() for name, geom in _GEOMS.items()}


__all__ = [
    "BarGeom",
    "BoxplotGeom",
    "ColGeom",
    "Geom",
    "GeomContext",
    "GeomKind",
    "HistogramGeom",
    "JitterGeom",
    "LabelGeom",
    "LineGeom",
    "PointGeom",
    "TextGeom",
    "get_geom",
    "list_geoms",
    "list_geoms_with_descriptions",
]
