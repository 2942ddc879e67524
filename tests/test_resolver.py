"""Tests for plot resolution: validation, scale training, positions and determinism."""

import logging

import numpy as np
import pandas as pd
import pytest

from gog_tlbx.analysis.resolver import PlotResolver, ResolvedPlot, resolve, visual_column
from gog_tlbx.analysis.scales import ScaleKind
from gog_tlbx.data.views import DatasetView
from gog_tlbx.exceptions import (
    EmptyPartitionWarning,
    EmptyPlotError,
    GrammarError,
    MissingRequiredChannelError,
    UnknownColumnError,
)
from gog_tlbx.grammar import (
    aes,
    const,
    geom_bar,
    geom_jitter,
    geom_line,
    geom_point,
    geom_text,
    ggplot,
    labs,
)


class TestValidation:
    """Test fail-fast validation."""

    def test_empty_plot(self, gapminder_view: DatasetView) -> None:
        """Test resolving a plot without layers."""
        with pytest.raises(EmptyPlotError, match="no layers"):
            ggplot(gapminder_view, aes(x="year", y="pop")).resolve()

    def test_missing_required_channel(self, gapminder_view: DatasetView) -> None:
        """Test an unbound required channel names the channel and the geometry."""
        spec = ggplot(gapminder_view, aes(x="year")) + geom_point()

        with pytest.raises(MissingRequiredChannelError) as exc_info:
            spec.resolve()
        assert exc_info.value.channel == "y"
        assert exc_info.value.geom == "point"

    def test_missing_channel_checked_before_columns(self, gapminder_view: DatasetView) -> None:
        """Test required channels are validated before column references."""
        with pytest.raises(MissingRequiredChannelError):
            (ggplot(gapminder_view, aes(x="gdp")) + geom_point()).resolve()

    def test_unknown_column(self, gapminder_view: DatasetView) -> None:
        """Test an unknown mapped column fails and nothing is mutated."""
        before = gapminder_view.df.copy()
        spec = ggplot(gapminder_view, aes(x="gdp", y="life_exp")) + geom_point()

        with pytest.raises(UnknownColumnError) as exc_info:
            spec.resolve()

        assert exc_info.value.column == "gdp"
        assert "layer 0 (point)" in str(exc_info.value)
        pd.testing.assert_frame_equal(gapminder_view.df, before)
        assert len(spec.layers) == 1

    def test_unknown_column_in_second_layer(self, gapminder_view: DatasetView) -> None:
        """Test the failing layer is named."""
        spec = ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point() + geom_line(aes(group="region"))
        with pytest.raises(UnknownColumnError, match="layer 1"):
            spec.resolve()

    def test_unknown_param(self, gapminder_view: DatasetView) -> None:
        """Test unknown geometry parameters are rejected."""
        with pytest.raises(ValueError, match="Unknown parameter"):
            (ggplot(gapminder_view, aes(x="year", y="pop")) + geom_point(bins=3)).resolve()

    def test_mixed_position_kinds(self, gapminder_view: DatasetView) -> None:
        """Test layers must agree on discrete vs continuous x."""
        spec = (
            ggplot(gapminder_view, aes(y="life_exp"))
            + geom_point(aes(x="year"))
            + geom_point(aes(x="continent"))
        )
        with pytest.raises(GrammarError, match="disagree"):
            spec.resolve()

    def test_result_before_fit(self, gapminder_view: DatasetView) -> None:
        """Test that result() requires fit()."""
        resolver = PlotResolver(ggplot(gapminder_view) + geom_point(aes(x="year", y="pop")))
        with pytest.raises(ValueError, match="fit"):
            resolver.result()


class TestPositions:
    """Test position scales."""

    def test_discrete_levels_are_sorted(self, gapminder_view: DatasetView) -> None:
        """Test discrete x levels are sorted and mapped to 0..k-1."""
        resolved = (ggplot(gapminder_view, aes(x="continent", y="life_exp")) + geom_point()).resolve()

        assert resolved.scales.x.kind == ScaleKind.DISCRETE
        assert resolved.scales.x.levels == ("Africa", "Americas", "Asia")
        marks = resolved.panels[0].layers[0].marks
        expected = marks["x"].map({"Africa": 0.0, "Americas": 1.0, "Asia": 2.0})
        np.testing.assert_allclose(marks["x_pos"], expected)

    def test_continuous_limits(self, gapminder_view: DatasetView) -> None:
        """Test continuous limits cover the data."""
        resolved = (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point()).resolve()
        assert resolved.scales.x.limits == (1997, 2007)
        assert resolved.scales.y.limits == (50.0, 78.0)

    def test_ordered_categorical_keeps_category_order(self) -> None:
        """Test ordinal levels follow the category order rather than the alphabet."""
        df = pd.DataFrame(
            {
                "size": pd.Categorical(["S", "L", "M"], categories=["S", "M", "L"], ordered=True),
                "v": [1.0, 2.0, 3.0],
            },
        )
        resolved = (ggplot(df, aes(x="size", y="v")) + geom_point()).resolve()
        assert resolved.scales.x.levels == ("S", "M", "L")

    def test_temporal_axis_and_nudge_in_days(self) -> None:
        """Test temporal x values stay datetimes and nudges are measured in days."""
        df = pd.DataFrame({"when": pd.to_datetime(["2020-01-01", "2020-02-01"]), "v": [1.0, 2.0]})
        resolved = (ggplot(df, aes(x="when", y="v")) + geom_text(label="a", nudge_x=1)).resolve()

        assert resolved.scales.x.kind == ScaleKind.TEMPORAL
        marks = resolved.panels[0].layers[0].marks
        assert (pd.to_datetime(marks["x_pos"]) - pd.to_datetime(marks["x"]) == pd.Timedelta(days=1)).all()

    def test_temporal_bars_rejected(self) -> None:
        """Test counted bars on a temporal x are rejected."""
        df = pd.DataFrame({"when": pd.to_datetime(["2020-01-01", "2020-02-01"])})
        with pytest.raises(GrammarError):
            (ggplot(df, aes(x="when")) + geom_bar()).resolve()

    def test_computed_y_title(self, gapminder_view: DatasetView) -> None:
        """Test counted bars get a computed y title and pretty x titles."""
        resolved = (ggplot(gapminder_view, aes(x="continent")) + geom_bar()).resolve()
        assert resolved.scales.y.title == "count"
        assert resolved.scales.x.title == "Continent"

    def test_label_overrides(self, gapminder_view: DatasetView) -> None:
        """Test labs() overrides axis and legend titles."""
        spec = (
            ggplot(gapminder_view, aes(x="year", y="life_exp", color="continent"))
            + geom_point()
            + labs("Title", y="Years lived", colour="Region")
        )
        resolved = spec.resolve()

        assert resolved.scales.y.title == "Years lived"
        assert resolved.scales.x.title == "Year"
        assert resolved.scales.legend("color").title == "Region"
        assert resolved.labels.title == "Title"
        assert resolved.labels.for_channel("x") == "Year"


class TestLines:
    """Test line grouping."""

    def test_without_group_single_zigzag_path(self, gapminder_view: DatasetView) -> None:
        """Test that without a group every row lands on one path in x order."""
        layer = (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_line()).resolve().panels[0].layers[0]
        paths = layer.paths()

        assert len(paths) == 1
        assert len(paths[0]) == 18
        assert paths[0]["x"].is_monotonic_increasing

    def test_group_gives_one_path_per_series(self, gapminder_view: DatasetView) -> None:
        """Test g groups of n rows give g disjoint paths of n points each."""
        spec = ggplot(gapminder_view, aes(x="year", y="life_exp", group="country")) + geom_line()
        paths = spec.resolve().panels[0].layers[0].paths()

        assert len(paths) == 6
        seen: set[int] = set()
        for path in paths:
            assert len(path) == 3
            assert path["x"].tolist() == [1997, 2002, 2007]
            assert path["order"].tolist() == [0, 1, 2]
            ids = set(path["row_id"])
            assert not ids & seen
            seen |= ids
        assert seen == set(gapminder_view.row_ids)

    def test_color_does_not_split_paths(self, gapminder_view: DatasetView) -> None:
        """Test only the group channel splits paths."""
        spec = ggplot(gapminder_view, aes(x="year", y="life_exp", color="continent")) + geom_line()
        assert len(spec.resolve().panels[0].layers[0].paths()) == 1

    def test_paths_only_for_lines(self, gapminder_view: DatasetView) -> None:
        """Test paths() is reserved for line layers."""
        layer = (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point()).resolve().panels[0].layers[0]
        with pytest.raises(ValueError, match="line"):
            layer.paths()


class TestJitter:
    """Test jitter determinism and bounds."""

    @staticmethod
    def _offsets(view: DatasetView, **params: object) -> np.ndarray:
        spec = ggplot(view, aes(x="continent", y="life_exp")) + geom_jitter(**params)
        marks = spec.resolve().panels[0].layers[0].marks
        return (marks["x_pos"] - marks["x"].map({"Africa": 0, "Americas": 1, "Asia": 2})).to_numpy()

    def test_same_seed_identical(self, gapminder_view: DatasetView) -> None:
        """Test the same seed gives bit-identical displacements."""
        np.testing.assert_array_equal(self._offsets(gapminder_view, seed=42), self._offsets(gapminder_view, seed=42))

    def test_different_seeds_differ(self, gapminder_view: DatasetView) -> None:
        """Test different seeds give different displacements."""
        assert not np.array_equal(self._offsets(gapminder_view, seed=1), self._offsets(gapminder_view, seed=2))

    def test_no_seed_is_fresh(self, gapminder_view: DatasetView) -> None:
        """Test that without a seed every resolution draws new displacements."""
        assert not np.array_equal(self._offsets(gapminder_view), self._offsets(gapminder_view))

    def test_offsets_are_bounded(self, gapminder_view: DatasetView) -> None:
        """Test displacements stay within the requested width."""
        offsets = self._offsets(gapminder_view, width=0.2, seed=3)
        assert np.all(np.abs(offsets) <= 0.2)
        assert np.any(offsets != 0)

    def test_y_untouched_by_default(self, gapminder_view: DatasetView) -> None:
        """Test default jitter only moves x."""
        spec = ggplot(gapminder_view, aes(x="continent", y="life_exp")) + geom_jitter(seed=0)
        marks = spec.resolve().panels[0].layers[0].marks
        np.testing.assert_allclose(marks["y_pos"], marks["y"].astype(float))

    def test_continuous_axis_uses_resolution(self, gapminder_view: DatasetView) -> None:
        """Test jitter on a continuous x scales with the gap between distinct values."""
        spec = ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_jitter(seed=5)
        marks = spec.resolve().panels[0].layers[0].marks
        offsets = marks["x_pos"] - marks["x"]
        assert offsets.abs().max() <= 0.4 * 5
        assert offsets.abs().max() > 0.4


class TestLegends:
    """Test legend scales."""

    def test_discrete_color_legend(self, gapminder_view: DatasetView) -> None:
        """Test one colour per level, NA-free, in sorted order."""
        resolved = (ggplot(gapminder_view, aes(x="year", y="life_exp", color="continent")) + geom_point()).resolve()
        legend = resolved.scales.legend("colour")

        assert legend is not None
        assert legend.is_discrete
        assert legend.levels == ("Africa", "Americas", "Asia")
        assert len(set(legend.values)) == 3
        marks = resolved.panels[0].layers[0].marks
        assert set(marks[visual_column("color")]) == set(legend.values)

    def test_continuous_color_legend(self, gapminder_view: DatasetView) -> None:
        """Test continuous columns get a colormap legend."""
        resolved = (ggplot(gapminder_view, aes(x="year", y="life_exp", color="pop")) + geom_point()).resolve()
        legend = resolved.scales.legend("color")

        assert legend is not None
        assert not legend.is_discrete
        assert legend.limits == (1_000_000.0, 6_020_000.0)
        assert all(v.startswith("#") for v in resolved.panels[0].layers[0].marks["color_value"])

    def test_constant_color_has_no_legend(self, gapminder_view: DatasetView) -> None:
        """Test constants are used as-is and produce no legend."""
        spec = ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point(color="#FF0000")
        resolved = spec.resolve()

        assert resolved.scales.legend("color") is None
        assert set(resolved.panels[0].layers[0].marks["color_value"]) == {"#FF0000"}

    def test_missing_level_gets_na_colour(self) -> None:
        """Test missing values get the NA colour and a trailing NA level."""
        df = pd.DataFrame({"x": [1.0, 2.0, 3.0], "y": [1.0, 2.0, 3.0], "g": ["a", None, "b"]})
        resolved = (ggplot(df, aes(x="x", y="y", color="g")) + geom_point()).resolve()
        legend = resolved.scales.legend("color")

        assert legend.levels == ("a", "b", None)
        assert legend.legend_entries()[-1][0] == "NA"
        assert resolved.panels[0].layers[0].marks["color_value"].iloc[1] == "#7F7F7F"

    def test_missing_size_and_alpha_use_geometry_defaults(self) -> None:
        """Test missing values on continuous size/alpha fall back to each geometry's default."""
        df = pd.DataFrame({"x": [1.0, 2.0, 3.0], "y": [1.0, 2.0, 3.0], "s": [np.nan, 1.0, 2.0]})
        spec = ggplot(df, aes(x="x", y="y", size="s", alpha="s")) + geom_point() + geom_line()
        point, line = spec.resolve().panels[0].layers

        assert point.marks["size_value"].iloc[0] == 1.5
        assert point.marks["alpha_value"].iloc[0] == 1.0
        assert line.marks["size_value"].iloc[0] == 1.0
        assert not point.marks["size_value"].isna().any()
        assert point.marks["alpha_value"].iloc[2] == 1.0

    def test_shape_needs_discrete_column(self, gapminder_view: DatasetView) -> None:
        """Test continuous columns cannot drive the shape channel."""
        with pytest.raises(GrammarError, match="shape"):
            (ggplot(gapminder_view, aes(x="year", y="life_exp", shape="pop")) + geom_point()).resolve()


class TestResolvedPlot:
    """Test the resolved plot container."""

    def test_layer_order_and_indices(self, gapminder_view: DatasetView) -> None:
        """Test layers are resolved in draw order."""
        spec = ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_line(aes(group="country")) + geom_point()
        panel = spec.resolve().panels[0]
        assert [layer.index for layer in panel.layers] == [0, 1]
        assert [layer.geom.value for layer in panel.layers] == ["line", "point"]

    def test_layer_data_function_and_inherit_aes(self, gapminder_view: DatasetView) -> None:
        """Test per-layer data and inherit_aes=False."""
        spec = (
            ggplot(gapminder_view, aes(x="year", y="life_exp", color="continent"))
            + geom_point()
            + geom_point(
                aes(x="year", y="life_exp", size=const(3)),
                data=lambda v: v.filter("year == 2007"),
                inherit_aes=False,
            )
        )
        panel = spec.resolve().panels[0]

        assert len(panel.layers[1].marks) == 6
        assert "color" not in panel.layers[1].marks
        assert "color" in panel.layers[0].marks

    def test_single_panel_without_facet(self, gapminder_view: DatasetView) -> None:
        """Test the no-facet case gives one panel holding every row."""
        resolved = resolve(ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point())

        assert isinstance(resolved, ResolvedPlot)
        assert len(resolved.panels) == 1
        assert resolved.panels[0].key == ()
        assert resolved.panels[0].row_ids.equals(gapminder_view.row_ids)
        assert (resolved.nrow, resolved.ncol) == (1, 1)

    def test_empty_data_warns(self, gapminder_view: DatasetView) -> None:
        """Test an empty dataset gives an empty panel and a warning."""
        empty = gapminder_view.filter("year > 3000")
        with pytest.warns(EmptyPartitionWarning):
            resolved = (ggplot(empty, aes(x="year", y="life_exp")) + geom_point()).resolve()

        assert resolved.panels[0].is_empty
        assert resolved.panels[0].layers[0].marks.empty
        assert resolved.scales.x.limits is None

    def test_resolution_is_repeatable(self, gapminder_view: DatasetView) -> None:
        """Test resolving the same spec twice yields the same marks."""
        spec = ggplot(gapminder_view, aes(x="continent", y="life_exp", color="country")) + geom_jitter(seed=11)
        first = spec.resolve().panels[0].layers[0].marks
        second = spec.resolve().panels[0].layers[0].marks
        pd.testing.assert_frame_equal(first, second)

    def test_invalid_backend(self, gapminder_view: DatasetView) -> None:
        """Test unknown rendering backends."""
        resolved = (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point()).resolve()
        with pytest.raises(ValueError, match="backend"):
            resolved.plot(backend="bokeh")

    def test_logs_summary(self, gapminder_view: DatasetView, caplog: pytest.LogCaptureFixture) -> None:
        """Test resolution logs a summary at INFO level."""
        caplog.set_level(logging.INFO, logger="gog_tlbx")
        (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_point()).resolve()
        assert "Resolved plot: 1 layer(s), 1 panel(s), 0 empty" in caplog.text
