"""Tests for the geometry kinds and their registry."""

import numpy as np
import pandas as pd
import pytest

from gog_tlbx.data.views import DatasetView
from gog_tlbx.exceptions import AmbiguousAggregationError, GrammarError, UnknownGeomError
from gog_tlbx.grammar import (
    aes,
    geom_bar,
    geom_boxplot,
    geom_col,
    geom_histogram,
    geom_label,
    geom_text,
    ggplot,
)
from gog_tlbx.grammar.aes import Channel
from gog_tlbx.grammar.geoms import GeomContext, GeomKind, get_geom, list_geoms, list_geoms_with_descriptions
from gog_tlbx.grammar.geoms.bar import position_bars


class TestGeomRegistry:
    """Test geometry lookup."""

    def test_list_geoms(self) -> None:
        """Test every geometry kind is registered."""
        assert list_geoms() == [kind.value for kind in GeomKind]
        assert set(list_geoms_with_descriptions()) == set(list_geoms())

    def test_get_geom(self) -> None:
        """Test lookup by name and by kind."""
        assert get_geom("Point").kind == GeomKind.POINT
        assert get_geom(GeomKind.HISTOGRAM).kind == GeomKind.HISTOGRAM

    def test_unknown_geom(self) -> None:
        """Test unknown names list the available geometries."""
        with pytest.raises(UnknownGeomError, match="Available geometries: point, jitter"):
            get_geom("violin")

    def test_required_channels(self) -> None:
        """Test the required channels per geometry."""
        assert get_geom("bar").required == {Channel.X}
        assert get_geom("col").required == {Channel.X, Channel.Y}
        assert get_geom("text").required == {Channel.X, Channel.Y, Channel.LABEL}

    def test_missing_channels(self) -> None:
        """Test missing required channels are reported in channel order."""
        assert get_geom("text").missing_channels(aes(x="a")) == [Channel.Y, Channel.LABEL]

    def test_resolve_params(self) -> None:
        """Test parameters merge over defaults and unknown names are rejected."""
        assert get_geom("histogram").resolve_params({"bins": 10})["bins"] == 10
        with pytest.raises(ValueError, match="Accepted: width, position"):
            get_geom("bar").resolve_params({"bins": 10})


class TestBarGeoms:
    """Test counted and summarized bars."""

    def test_counts_match_groupby(self, gapminder_view: DatasetView) -> None:
        """Test bar heights equal the row counts per (x, fill)."""
        view = gapminder_view.derive("late", "year >= 2002")
        spec = ggplot(view, aes(x="continent", fill="late")) + geom_bar()

        marks = spec.resolve().panels[0].layers[0].marks
        expected = view.df.groupby(["continent", "late"]).size()

        assert len(marks) == len(expected)
        for x, fill, count in zip(marks["x"], marks["fill"], marks["count"], strict=True):
            assert count == expected[(x, bool(fill))]
        assert marks["count"].sum() == view.row_count

    def test_stacking(self, gapminder_view: DatasetView) -> None:
        """Test stacked bars start at zero and end at the total count per x."""
        view = gapminder_view.derive("late", "year >= 2002")
        marks = (ggplot(view, aes(x="continent", fill="late")) + geom_bar()).resolve().panels[0].layers[0].marks

        for _, bars in marks.groupby("x"):
            assert bars["ymin"].min() == 0
            assert bars["ymax"].max() == 6
            np.testing.assert_allclose(bars["ymax"] - bars["ymin"], bars["count"])

    def test_dodging(self, gapminder_view: DatasetView) -> None:
        """Test dodged bars are placed side by side within the x slot."""
        view = gapminder_view.derive("late", "year >= 2002")
        marks = (
            (ggplot(view, aes(x="continent", fill="late")) + geom_bar(position="dodge"))
            .resolve()
            .panels[0]
            .layers[0]
            .marks
        )

        assert (marks["ymin"] == 0).all()
        assert marks["width"].tolist() == pytest.approx([0.45] * 6)
        africa = marks[marks["x"] == "Africa"]
        assert africa["x_pos"].tolist() == pytest.approx([-0.225, 0.225])

    def test_bars_in_level_order(self, gapminder_view: DatasetView) -> None:
        """Test bars follow the sorted x levels."""
        marks = (ggplot(gapminder_view, aes(x="continent")) + geom_bar()).resolve().panels[0].layers[0].marks
        assert marks["x"].tolist() == ["Africa", "Americas", "Asia"]
        assert marks["x_pos"].tolist() == [0.0, 1.0, 2.0]

    def test_col_ambiguous_without_agg(self, gapminder_view: DatasetView) -> None:
        """Test several rows per bar without an aggregation rule are rejected."""
        spec = ggplot(gapminder_view, aes(x="continent", y="pop")) + geom_col()

        with pytest.raises(AmbiguousAggregationError) as exc_info:
            spec.resolve()
        assert exc_info.value.geom == "col"
        assert set(exc_info.value.duplicates) == {"Africa", "Americas", "Asia"}

    def test_col_with_agg(self, gapminder_view: DatasetView) -> None:
        """Test agg combines rows per bar."""
        spec = ggplot(gapminder_view, aes(x="continent", y="pop")) + geom_col(agg="sum")
        marks = spec.resolve().panels[0].layers[0].marks

        expected = gapminder_view.df.groupby("continent")["pop"].sum()
        assert dict(zip(marks["x"], marks["y"], strict=True)) == expected.to_dict()
        assert marks["n"].tolist() == [6, 6, 6]

    def test_col_unique_rows(self, gapminder_view: DatasetView) -> None:
        """Test one row per bar needs no aggregation."""
        recent = gapminder_view.filter("year == 2007")
        marks = (ggplot(recent, aes(x="country", y="life_exp")) + geom_col()).resolve().panels[0].layers[0].marks
        assert len(marks) == 6
        np.testing.assert_allclose(np.sort(marks["ymax"]), np.sort(recent.df["life_exp"]))

    def test_col_invalid_agg(self, gapminder_view: DatasetView) -> None:
        """Test unknown aggregation names."""
        spec = ggplot(gapminder_view, aes(x="continent", y="pop")) + geom_col(agg="mode")
        with pytest.raises(ValueError, match="Invalid agg"):
            spec.resolve()

    def test_invalid_position(self) -> None:
        """Test unknown bar positions."""
        with pytest.raises(ValueError, match="Invalid position"):
            position_bars(pd.DataFrame({"x": ["a"], "y": [1]}), "fill", 0.9)


class TestHistogramGeom:
    """Test histogram binning."""

    def test_binwidth(self, gapminder_view: DatasetView) -> None:
        """Test bins of the requested width cover every value."""
        marks = (
            (ggplot(gapminder_view, aes(x="life_exp")) + geom_histogram(binwidth=5)).resolve().panels[0].layers[0].marks
        )

        np.testing.assert_allclose(marks["xmax"] - marks["xmin"], 5.0)
        assert marks["xmin"].min() == 50.0
        assert marks["xmax"].max() >= gapminder_view.df["life_exp"].max()
        assert marks["count"].sum() == 18

    def test_bins(self, gapminder_view: DatasetView) -> None:
        """Test a fixed number of bins."""
        marks = (ggplot(gapminder_view, aes(x="pop")) + geom_histogram(bins=4)).resolve().panels[0].layers[0].marks
        assert len(marks) == 4
        assert marks["count"].sum() == 18

    def test_fill_groups_stack(self, gapminder_view: DatasetView) -> None:
        """Test fill splits counts per group, stacked per bin."""
        marks = (
            (ggplot(gapminder_view, aes(x="life_exp", fill="continent")) + geom_histogram(binwidth=10))
            .resolve()
            .panels[0]
            .layers[0]
            .marks
        )
        assert marks.groupby("fill")["count"].sum().to_dict() == {"Africa": 6, "Americas": 6, "Asia": 6}
        for _, bars in marks.groupby("x"):
            assert bars["ymax"].max() == bars["count"].sum()

    def test_discrete_x_rejected(self, gapminder_view: DatasetView) -> None:
        """Test histograms need a continuous x."""
        with pytest.raises(GrammarError, match="continuous numeric x"):
            (ggplot(gapminder_view, aes(x="continent")) + geom_histogram()).resolve()


class TestBoxplotGeom:
    """Test box plot summaries."""

    def test_outliers_outside_whiskers(self) -> None:
        """Test the outlier lies beyond the whisker and keeps its row identity."""
        df = pd.DataFrame(
            {
                "g": ["a"] * 6 + ["b"] * 5,
                "v": [10.0, 11.0, 12.0, 13.0, 14.0, 100.0, 1.0, 2.0, 3.0, 4.0, 5.0],
            },
        )
        marks = (ggplot(df, aes(x="g", y="v")) + geom_boxplot()).resolve().panels[0].layers[0].marks

        a = marks[marks["x"] == "a"].iloc[0]
        assert a["outliers"] == [100.0]
        assert a["outlier_ids"] == [5]
        assert a["whisker_high"] == 14.0
        assert all(v > a["whisker_high"] or v < a["whisker_low"] for v in a["outliers"])

        b = marks[marks["x"] == "b"].iloc[0]
        assert b["outliers"] == []
        assert b["median"] == 3.0

    def test_box_y_limits_cover_outliers(self) -> None:
        """Test the y scale is trained on the outliers too."""
        df = pd.DataFrame({"g": ["a"] * 6, "v": [10.0, 11.0, 12.0, 13.0, 14.0, 100.0]})
        resolved = (ggplot(df, aes(x="g", y="v")) + geom_boxplot()).resolve()
        assert resolved.scales.y.limits == (10.0, 100.0)

    def test_discrete_y_rejected(self, gapminder_view: DatasetView) -> None:
        """Test box plots need a continuous y."""
        with pytest.raises(GrammarError, match="continuous y"):
            (ggplot(gapminder_view, aes(x="year", y="continent")) + geom_boxplot()).resolve()

    def test_fill_dodges_boxes(self, gapminder_view: DatasetView) -> None:
        """Test boxes sharing an x are dodged."""
        view = gapminder_view.derive("late", "year >= 2002")
        marks = (
            (ggplot(view, aes(x="continent", y="life_exp", fill="late")) + geom_boxplot())
            .resolve()
            .panels[0]
            .layers[0]
            .marks
        )
        assert len(marks) == 6
        assert marks["width"].tolist() == pytest.approx([0.375] * 6)
        assert marks["n"].tolist() == [2, 4] * 3


class TestTextGeoms:
    """Test text and label geometries."""

    def test_text_marks(self, gapminder_view: DatasetView) -> None:
        """Test one text mark per row with the label values."""
        recent = gapminder_view.filter("year == 2007")
        marks = (
            (ggplot(recent, aes(x="gdp_percap", y="life_exp", label="country")) + geom_text(nudge_y=0.5))
            .resolve()
            .panels[0]
            .layers[0]
            .marks
        )

        assert marks["label"].tolist() == recent.df["country"].tolist()
        assert not marks["boxed"].any()
        np.testing.assert_allclose(marks["y_pos"], recent.df["life_exp"].to_numpy() + 0.5)

    def test_label_marks(self, gapminder_view: DatasetView) -> None:
        """Test labels are boxed and carry their padding."""
        marks = (
            (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_label(aes(label="country"), label_padding=0.4))
            .resolve()
            .panels[0]
            .layers[0]
            .marks
        )
        assert marks["boxed"].all()
        assert (marks["label_padding"] == 0.4).all()

    def test_constant_label(self, gapminder_view: DatasetView) -> None:
        """Test a constant label is broadcast to every row."""
        marks = (
            (ggplot(gapminder_view, aes(x="year", y="life_exp")) + geom_text(label="x"))
            .resolve()
            .panels[0]
            .layers[0]
            .marks
        )
        assert set(marks["label"]) == {"x"}


class TestGeomContext:
    """Test computing marks directly."""

    def test_point_compute_keeps_row_ids(self, gapminder_df: pd.DataFrame) -> None:
        """Test point marks reference their source rows."""
        geom = get_geom("point")
        marks = geom.compute(gapminder_df, aes(x="year", y="pop"), {}, GeomContext(layer_frame=gapminder_df))
        assert marks["row_id"].tolist() == gapminder_df.index.tolist()
        assert list(marks.columns) == ["row_id", "x", "y"]
