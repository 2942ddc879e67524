"""Tests for aesthetic mappings, layers and labels."""

from dataclasses import FrozenInstanceError

import pytest

from gog_tlbx.data.views import DatasetView
from gog_tlbx.grammar.aes import AestheticMapping, Channel, ColumnBinding, ConstantBinding, aes, col, const
from gog_tlbx.grammar.geoms import GeomKind
from gog_tlbx.grammar.labels import Labels, labs
from gog_tlbx.grammar.layers import Layer, geom_jitter, geom_point, layer


class TestChannel:
    """Test channel name parsing."""

    def test_parse_alias(self) -> None:
        """Test the British spelling maps to color."""
        assert Channel.parse("colour") == Channel.COLOR
        assert Channel.parse("COLOR") == Channel.COLOR

    def test_parse_unknown(self) -> None:
        """Test unknown channel names list the available channels."""
        with pytest.raises(ValueError, match="Available channels"):
            Channel.parse("thickness")


class TestAestheticMapping:
    """Test mapping construction and merging."""

    def test_aes_bindings(self) -> None:
        """Test strings bind columns, other values bind constants, None is dropped."""
        mapping = aes(x="year", y=None, color="continent", size=2, alpha=const(0.5))

        assert mapping[Channel.X] == ColumnBinding("year")
        assert Channel.Y not in mapping
        assert mapping["color"] == col("continent")
        assert mapping[Channel.SIZE] == ConstantBinding(2)
        assert mapping[Channel.ALPHA] == const(0.5)

    def test_constant_string(self) -> None:
        """Test const() keeps strings from being read as column names."""
        mapping = aes(color=const("steelblue"))
        assert not mapping.is_column("color")
        assert mapping.column_of("color") is None
        assert mapping.columns() == []

    def test_merge_is_right_biased(self) -> None:
        """Test the right operand wins per channel and other channels are carried over."""
        base = aes(x="year", y="life_exp", color="continent")
        override = aes(color=const("grey"), group="country")

        merged = base.merge(override)

        assert merged[Channel.X] == col("year")
        assert merged[Channel.Y] == col("life_exp")
        assert merged[Channel.COLOR] == const("grey")
        assert merged[Channel.GROUP] == col("country")
        assert set(merged) == set(base) | set(override)

    def test_merge_does_not_mutate(self) -> None:
        """Test merging leaves both operands unchanged."""
        base = aes(x="year")
        base.merge(aes(x="pop"))
        assert base[Channel.X] == col("year")

    def test_merge_none(self) -> None:
        """Test merging with None returns the mapping itself."""
        base = aes(x="year")
        assert base.merge(None) is base

    def test_colour_alias_in_aes(self) -> None:
        """Test aes(colour=...) binds the color channel."""
        assert aes(colour="continent").column_of(Channel.COLOR) == "continent"

    def test_columns_are_distinct(self) -> None:
        """Test columns() lists each referenced column once."""
        mapping = aes(x="continent", fill="continent", y="pop")
        assert mapping.columns() == ["continent", "pop"]

    def test_without(self) -> None:
        """Test dropping channels."""
        assert Channel.COLOR not in aes(x="a", color="b").without("colour")

    def test_mapping_is_immutable(self) -> None:
        """Test bindings cannot be modified in place."""
        mapping = aes(x="year")
        with pytest.raises(TypeError):
            mapping.bindings[Channel.Y] = col("pop")  # type: ignore[index]
        with pytest.raises(FrozenInstanceError):
            mapping.bindings = {}  # type: ignore[misc]

    def test_repr(self) -> None:
        """Test the readable representation."""
        assert repr(aes(x="year", size=const(2))) == "aes(x=col('year'), size=const(2))"


class TestLayer:
    """Test layer construction."""

    def test_channel_kwargs_become_constants(self) -> None:
        """Test channel-named kwargs are constant bindings, the rest are params."""
        jitter = geom_jitter(aes(color="continent"), width=0.2, seed=42, alpha=0.5)

        assert jitter.geom == GeomKind.JITTER
        assert dict(jitter.params) == {"width": 0.2, "seed": 42}
        assert jitter.mapping is not None
        assert jitter.mapping[Channel.ALPHA] == const(0.5)
        assert jitter.mapping[Channel.COLOR] == col("continent")

    def test_constant_kwarg_overrides_layer_mapping(self) -> None:
        """Test a constant kwarg wins over the same channel in the layer mapping."""
        point = geom_point(aes(color="continent"), colour="black")
        assert point.mapping is not None
        assert point.mapping[Channel.COLOR] == const("black")

    def test_effective_mapping(self) -> None:
        """Test the layer mapping is merged over the plot mapping unless inherit_aes is False."""
        plot_mapping = aes(x="year", y="life_exp", color="continent")
        inherited = geom_point(aes(y="pop"))
        isolated = geom_point(aes(x="year", y="pop"), inherit_aes=False)

        assert inherited.effective_mapping(plot_mapping).column_of("y") == "pop"
        assert inherited.effective_mapping(plot_mapping).column_of("color") == "continent"
        assert Channel.COLOR not in isolated.effective_mapping(plot_mapping)

    def test_effective_data(self, gapminder_view: DatasetView) -> None:
        """Test data overrides, data functions and the base fallback."""
        recent = gapminder_view.filter("year == 2007")

        assert geom_point().effective_data(gapminder_view) is gapminder_view
        assert geom_point(data=recent).effective_data(gapminder_view) is recent
        derived = geom_point(data=lambda v: v.filter("year == 1997")).effective_data(gapminder_view)
        assert derived.row_count == 6

    def test_effective_data_function_must_return_view(self, gapminder_view: DatasetView) -> None:
        """Test data functions returning something else are rejected."""
        bad = geom_point(data=lambda v: v.df)
        with pytest.raises(TypeError, match="DatasetView"):
            bad.effective_data(gapminder_view)

    def test_layer_is_frozen(self) -> None:
        """Test layers are immutable and with_params returns a copy."""
        point = layer("point", size=3)
        with pytest.raises(FrozenInstanceError):
            point.geom = GeomKind.LINE  # type: ignore[misc]

        bigger = point.with_params(seed=1)
        assert dict(bigger.params) == {"seed": 1}
        assert dict(point.params) == {}

    def test_unknown_geom_name(self) -> None:
        """Test unknown geometry names are rejected."""
        with pytest.raises(ValueError):
            Layer(geom="violin")  # type: ignore[arg-type]


class TestLabels:
    """Test title and channel labels."""

    def test_labs(self) -> None:
        """Test titles and channel labels with aliases."""
        labels = labs("Title", subtitle="Sub", colour="Region", x="GDP")
        assert labels.title == "Title"
        assert labels.for_channel("color") == "Region"
        assert labels.for_channel(Channel.X) == "GDP"
        assert labels.for_channel("y") is None

    def test_merge_is_right_biased(self) -> None:
        """Test fields set on the right win while unset fields are kept."""
        merged = labs("Old", x="a").merge(labs(caption="Source", x="b", y="c"))
        assert merged.title == "Old"
        assert merged.caption == "Source"
        assert dict(merged.channels) == {Channel.X: "b", Channel.Y: "c"}
        assert isinstance(merged, Labels)
