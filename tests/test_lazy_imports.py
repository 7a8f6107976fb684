"""Tests for trill.__init__ — lazy exports cover all public names."""

import pytest

import trill


@pytest.mark.parametrize("name", trill.__all__)
def test_all_names_resolve(name: str) -> None:
    """Every name in __all__ must resolve via __getattr__ without error."""
    obj = getattr(trill, name)
    assert obj is not None, f"trill.{name} resolved to None"


def test_exports_are_the_real_objects() -> None:
    from trill.app import App
    from trill.signals import halt

    assert trill.App is App
    assert trill.halt is halt


def test_unknown_name_raises_attribute_error() -> None:
    """Accessing an unregistered name raises AttributeError."""
    with pytest.raises(AttributeError, match="no attribute"):
        trill.__getattr__("ThisDoesNotExist")


def test_version() -> None:
    assert trill.__version__ == "0.1.0"
