"""Tests for perch's lazy top-level exports."""

import pytest

import perch


class TestLazyImports:
    @pytest.mark.parametrize("name", perch.__all__)
    def test_every_export_resolves(self, name: str) -> None:
        assert getattr(perch, name) is not None

    def test_app_is_the_app_class(self) -> None:
        from perch.app import App

        assert perch.App is App

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError, match="no attribute 'Nope'"):
            _ = perch.Nope
