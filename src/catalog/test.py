"""Unit tests for the catalog module."""

import pytest
from pydantic import ValidationError

from src.catalog import DEFAULT_CATALOG, ClassCatalog, ClassEntry, UnknownClassError


class TestClassEntry:
    """Tests for the ClassEntry model."""

    @pytest.mark.unit
    def test_entry_is_frozen(self):
        """Entries cannot be mutated after construction."""
        entry = ClassEntry(name="Button", class_index=0)
        with pytest.raises(ValidationError):
            entry.class_index = 3

    @pytest.mark.unit
    def test_negative_index_rejected(self):
        """Class indices must be non-negative."""
        with pytest.raises(ValidationError):
            ClassEntry(name="Button", class_index=-1)

    @pytest.mark.unit
    def test_empty_name_rejected(self):
        """Names must not be empty."""
        with pytest.raises(ValidationError):
            ClassEntry(name="", class_index=0)


class TestClassCatalog:
    """Tests for ClassCatalog lookup and ordering."""

    @pytest.mark.unit
    def test_lookup(self):
        """Known names resolve to their class index."""
        catalog = ClassCatalog([("Button", 0), ("CheckBox", 1)])
        assert catalog.class_index_of("CheckBox") == 1

    @pytest.mark.unit
    def test_unknown_name_raises(self):
        """Unknown names raise UnknownClassError."""
        catalog = ClassCatalog([("Button", 0)])
        with pytest.raises(UnknownClassError, match="Slider"):
            catalog.class_index_of("Slider")

    @pytest.mark.unit
    def test_unknown_class_is_key_error(self):
        """UnknownClassError can be caught as KeyError."""
        with pytest.raises(KeyError):
            ClassCatalog([]).class_index_of("x")

    @pytest.mark.unit
    def test_lookup_is_idempotent(self):
        """Repeated lookups return the same integer."""
        results = {DEFAULT_CATALOG.class_index_of("upDown") for _ in range(100)}
        assert results == {8}

    @pytest.mark.unit
    def test_duplicate_name_rejected(self):
        """Names must be unique."""
        with pytest.raises(ValueError, match="Duplicate"):
            ClassCatalog([("Button", 0), ("Button", 1)])

    @pytest.mark.unit
    def test_shared_index_allowed(self):
        """Several names may share one class index."""
        catalog = ClassCatalog([("radio", 8), ("switch", 8)])
        assert catalog.class_index_of("radio") == catalog.class_index_of("switch")

    @pytest.mark.unit
    def test_entries_preserve_definition_order(self):
        """Entries come back in insertion order, not sorted."""
        catalog = ClassCatalog([("zeta", 0), ("alpha", 1), ("mid", 2)])
        assert catalog.names() == ["zeta", "alpha", "mid"]
        assert [e.name for e in catalog] == ["zeta", "alpha", "mid"]

    @pytest.mark.unit
    def test_accepts_entry_objects(self):
        """ClassEntry instances are accepted as-is."""
        entry = ClassEntry(name="icon", class_index=3)
        catalog = ClassCatalog([entry])
        assert catalog.entries() == (entry,)

    @pytest.mark.unit
    def test_contains_and_len(self):
        """Membership and length reflect the entries."""
        catalog = ClassCatalog([("Button", 0), ("menu", 6)])
        assert "menu" in catalog
        assert "Slider" not in catalog
        assert len(catalog) == 2

    @pytest.mark.unit
    def test_class_names_fill_gaps(self):
        """Class names list covers every index up to the highest."""
        catalog = ClassCatalog([("Button", 0), ("radio", 2), ("switch", 2)])
        assert catalog.class_count == 3
        assert catalog.class_names() == ["Button", "1", "radio"]

    @pytest.mark.unit
    def test_empty_catalog(self):
        """Empty catalog has no classes."""
        catalog = ClassCatalog([])
        assert catalog.class_count == 0
        assert catalog.class_names() == []


class TestDefaultCatalog:
    """Tests for the shipped catalog definition."""

    @pytest.mark.unit
    def test_order(self):
        """Default order matches the control definition order."""
        assert DEFAULT_CATALOG.names() == [
            "Button",
            "CheckBox",
            "ComboBox",
            "icon",
            "input",
            "label",
            "menu",
            "menuItem",
            "radio",
            "switch",
            "tabControl",
            "upDown",
        ]

    @pytest.mark.unit
    def test_many_to_one_collapse(self):
        """Radio, switch, tabControl and upDown share class 8."""
        for name in ("radio", "switch", "tabControl", "upDown"):
            assert DEFAULT_CATALOG.class_index_of(name) == 8

    @pytest.mark.unit
    def test_class_count(self):
        """Nine trained classes."""
        assert DEFAULT_CATALOG.class_count == 9
        assert DEFAULT_CATALOG.class_names()[8] == "radio"
