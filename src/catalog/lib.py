"""Control-type catalog and label class assignment.

The catalog is the contract between the renderer, which picks a control kind
by name, and the annotation encoder, which writes the trained class index.
Several control kinds intentionally collapse onto one class index, so both
fields are kept explicit on each entry rather than derived from each other.
"""

from collections.abc import Iterable, Iterator

from pydantic import BaseModel, Field


class UnknownClassError(KeyError):
    """Raised when a control name has no catalog entry."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown control class: {self.name!r}"


class ClassEntry(BaseModel):
    """Single catalog row.

    Attributes:
        name: Control kind identifier, unique within a catalog.
        class_index: Trained label class the control kind is written as.
    """

    name: str = Field(..., min_length=1, description="Control kind identifier")
    class_index: int = Field(..., ge=0, description="Label class index")

    model_config = {"frozen": True}


class ClassCatalog:
    """Ordered, immutable mapping from control name to class index.

    Iteration order is the definition order and drives placement order,
    which in turn affects collision outcomes on crowded canvases.

    Example:
        >>> catalog = ClassCatalog([("Button", 0), ("switch", 8)])
        >>> catalog.class_index_of("switch")
        8
        >>> [e.name for e in catalog.entries()]
        ['Button', 'switch']
    """

    def __init__(self, entries: Iterable[ClassEntry | tuple[str, int]]):
        """Build a catalog.

        Args:
            entries: ClassEntry objects or (name, class_index) pairs.

        Raises:
            ValueError: If a name appears twice or an index is negative.
        """
        built: list[ClassEntry] = []
        index: dict[str, int] = {}
        for item in entries:
            entry = (
                item
                if isinstance(item, ClassEntry)
                else ClassEntry(name=item[0], class_index=item[1])
            )
            if entry.name in index:
                raise ValueError(f"Duplicate catalog name '{entry.name}'")
            index[entry.name] = entry.class_index
            built.append(entry)

        self._entries: tuple[ClassEntry, ...] = tuple(built)
        self._index = index

    def class_index_of(self, name: str) -> int:
        """Look up the class index for a control name.

        Raises:
            UnknownClassError: If the name is not in the catalog.
        """
        try:
            return self._index[name]
        except KeyError:
            raise UnknownClassError(name) from None

    def entries(self) -> tuple[ClassEntry, ...]:
        """All entries in definition order."""
        return self._entries

    def names(self) -> list[str]:
        """Control names in definition order."""
        return [entry.name for entry in self._entries]

    @property
    def class_count(self) -> int:
        """Number of distinct label classes (highest index + 1)."""
        if not self._entries:
            return 0
        return max(entry.class_index for entry in self._entries) + 1

    def class_names(self) -> list[str]:
        """One display name per class index.

        The first catalog name mapped to an index names the class. Indices
        with no entry are named after the index itself.
        """
        names: dict[int, str] = {}
        for entry in self._entries:
            names.setdefault(entry.class_index, entry.name)
        return [names.get(i, str(i)) for i in range(self.class_count)]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[ClassEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ClassCatalog({len(self._entries)} entries, {self.class_count} classes)"


# Control kinds beyond "radio" are drawn differently but trained as one class.
DEFAULT_CATALOG = ClassCatalog(
    [
        ("Button", 0),
        ("CheckBox", 1),
        ("ComboBox", 2),
        ("icon", 3),
        ("input", 4),
        ("label", 5),
        ("menu", 6),
        ("menuItem", 7),
        ("radio", 8),
        ("switch", 8),
        ("tabControl", 8),
        ("upDown", 8),
    ]
)


__all__ = [
    "ClassCatalog",
    "ClassEntry",
    "DEFAULT_CATALOG",
    "UnknownClassError",
]
