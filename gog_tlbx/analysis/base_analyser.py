"""Base analyzer class for the computation components of the toolbox."""

from abc import ABC, abstractmethod
from typing import Any


class BaseAnalyser(ABC):
    """Abstract base class for computation components (resolver, statistics).

    All analyzers must:
    1. Accept their immutable input (a DatasetView or a PlotSpec) in the constructor
    2. Implement fit() to perform the computation and return self for chaining
    3. Implement result() to return a frozen dataclass with results

    No analyzer mutates its input, so one PlotSpec or view may feed several analyzers.


    ---


    ### Adding a New Geometry

    **1. Create a geom class** (in `grammar/geoms/my_geom.py`):

    ```python
    from gog_tlbx.grammar.aes import Channel
    from gog_tlbx.grammar.geoms.base import Geom, GeomContext, GeomKind

    class StepGeom(Geom):
        kind = GeomKind.STEP
        required = frozenset({Channel.X, Channel.Y})

        def compute(self, frame, mapping, params, ctx):
            marks = self.row_marks(frame, mapping)
            # ... geometry-specific transform ...
            return marks

        def get_description(self) -> str:
            return "Stair-step line connecting observations in x order"
    ```

    **2. Register it** in `grammar/geoms/__init__.py` and add a `geom_step()` constructor
    to `grammar/layers.py`.

    ### Adding Drawing Support

    **In `plotting/grammar_plots.py`** add a `_draw_step(ax, layer, theme)` function and
    register it in `_DRAWERS`. Drawers only translate marks into artists; every data
    decision (grouping, counting, ordering, scale training) belongs to the geom or the resolver.
    """

    @abstractmethod
    def fit(self) -> "BaseAnalyser":
        """Run the computation.

        Returns:
            Self for method chaining.
        """
        ...

    @abstractmethod
    def result(self) -> Any:
        """Return results as a frozen dataclass instance.

        Raises:
            ValueError: If fit() has not been called yet.
        """
        ...
