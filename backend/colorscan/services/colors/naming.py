"""
Canonical color naming.

Maps any RGB color to the catalog entry whose reference color is nearest by
Euclidean RGB distance. Ties resolve to the entry listed first. The catalog
is built and validated once at import and never mutated afterwards, so it is
safe to share between worker threads.
"""

from typing import Dict, Iterable, List, Sequence, Tuple

import numpy as np
from sklearn.metrics import pairwise_distances_argmin

from colorscan.services.errors import CatalogError


# (name, (r, g, b)) reference swatches
CANONICAL_COLORS: Tuple[Tuple[str, Tuple[int, int, int]], ...] = (
    # Neutrals
    ("Black", (0, 0, 0)),
    ("DimGray", (105, 105, 105)),
    ("Gray", (128, 128, 128)),
    ("SlateGray", (112, 128, 144)),
    ("DarkGray", (169, 169, 169)),
    ("Silver", (192, 192, 192)),
    ("LightGray", (211, 211, 211)),
    ("Gainsboro", (220, 220, 220)),
    ("WhiteSmoke", (245, 245, 245)),
    ("White", (255, 255, 255)),
    # Reds
    ("Red", (255, 0, 0)),
    ("DarkRed", (139, 0, 0)),
    ("Maroon", (128, 0, 0)),
    ("Crimson", (220, 20, 60)),
    ("FireBrick", (178, 34, 34)),
    ("IndianRed", (205, 92, 92)),
    ("LightCoral", (240, 128, 128)),
    ("Salmon", (250, 128, 114)),
    ("Tomato", (255, 99, 71)),
    ("OrangeRed", (255, 69, 0)),
    # Oranges and yellows
    ("DarkOrange", (255, 140, 0)),
    ("Orange", (255, 165, 0)),
    ("Gold", (255, 215, 0)),
    ("Yellow", (255, 255, 0)),
    ("LightYellow", (255, 255, 224)),
    ("Khaki", (240, 230, 140)),
    ("Olive", (128, 128, 0)),
    # Greens
    ("YellowGreen", (154, 205, 50)),
    ("Chartreuse", (127, 255, 0)),
    ("Green", (0, 255, 0)),
    ("LightGreen", (144, 238, 144)),
    ("ForestGreen", (34, 139, 34)),
    ("DarkGreen", (0, 100, 0)),
    ("SeaGreen", (46, 139, 87)),
    ("OliveDrab", (107, 142, 35)),
    # Cyans and blues
    ("Teal", (0, 128, 128)),
    ("Turquoise", (64, 224, 208)),
    ("Cyan", (0, 255, 255)),
    ("LightCyan", (224, 255, 255)),
    ("SkyBlue", (135, 206, 235)),
    ("LightBlue", (173, 216, 230)),
    ("SteelBlue", (70, 130, 180)),
    ("DodgerBlue", (30, 144, 255)),
    ("RoyalBlue", (65, 105, 225)),
    ("Blue", (0, 0, 255)),
    ("MediumBlue", (0, 0, 205)),
    ("DarkBlue", (0, 0, 139)),
    ("Navy", (0, 0, 128)),
    ("Lavender", (230, 230, 250)),
    # Purples and pinks
    ("Indigo", (75, 0, 130)),
    ("Purple", (128, 0, 128)),
    ("DarkViolet", (148, 0, 211)),
    ("Violet", (238, 130, 238)),
    ("Magenta", (255, 0, 255)),
    ("Orchid", (218, 112, 214)),
    ("Plum", (221, 160, 221)),
    ("Pink", (255, 192, 203)),
    ("HotPink", (255, 105, 180)),
    ("DeepPink", (255, 20, 147)),
    # Browns
    ("Brown", (165, 42, 42)),
    ("SaddleBrown", (139, 69, 19)),
    ("Sienna", (160, 82, 45)),
    ("Chocolate", (210, 105, 30)),
    ("Peru", (205, 133, 63)),
    ("Tan", (210, 180, 140)),
    ("BurlyWood", (222, 184, 135)),
    ("Wheat", (245, 222, 179)),
    ("Beige", (245, 245, 220)),
)


class ColorCatalog:
    """Read-only set of named reference colors with nearest-match lookup."""

    def __init__(self, entries: Iterable[Tuple[str, Sequence[int]]]):
        entries = tuple((str(name), tuple(int(c) for c in rgb)) for name, rgb in entries)
        self._validate(entries)

        self._names: Tuple[str, ...] = tuple(name for name, _ in entries)
        self._index: Dict[str, int] = {name: i for i, name in enumerate(self._names)}

        colors = np.array([rgb for _, rgb in entries], dtype=np.float64)
        colors.setflags(write=False)
        self._colors = colors

    @staticmethod
    def _validate(entries: Tuple[Tuple[str, Tuple[int, ...]], ...]) -> None:
        if not entries:
            raise CatalogError("Color catalog is empty")

        seen_names = set()
        seen_colors = set()
        for name, rgb in entries:
            if not name:
                raise CatalogError("Color catalog contains an unnamed entry")
            if len(rgb) != 3 or any(c < 0 or c > 255 for c in rgb):
                raise CatalogError(f"Invalid reference color for {name}: {rgb}")
            if name in seen_names:
                raise CatalogError(f"Duplicate color name in catalog: {name}")
            if rgb in seen_colors:
                raise CatalogError(f"Duplicate reference color in catalog: {rgb} ({name})")
            seen_names.add(name)
            seen_colors.add(rgb)

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def reference(self, name: str) -> Tuple[int, int, int]:
        """Reference RGB of a catalog name."""
        if name not in self._index:
            raise CatalogError(f"Unknown color name: {name}")
        return tuple(int(c) for c in self._colors[self._index[name]])

    def require(self, names: Iterable[str]) -> List[str]:
        """Return names unchanged, raising CatalogError if any is not in the catalog."""
        names = list(names)
        unknown = [name for name in names if name not in self._index]
        if unknown:
            raise CatalogError(f"Unknown color name(s): {', '.join(unknown)}")
        return names

    def nearest_indices(self, colors_rgb: np.ndarray) -> np.ndarray:
        """Catalog index of the nearest reference color for each RGB row."""
        colors = np.asarray(colors_rgb, dtype=np.float64).reshape(-1, 3)
        if len(colors) == 0:
            return np.empty(0, dtype=np.intp)
        return pairwise_distances_argmin(colors, self._colors, metric="euclidean")

    def name_many(self, colors_rgb: np.ndarray) -> List[str]:
        """Canonical name for each RGB row."""
        return [self._names[i] for i in self.nearest_indices(colors_rgb)]

    def name_of(self, rgb: Sequence[float]) -> str:
        """Canonical name for a single RGB color."""
        return self.name_many(np.asarray(rgb).reshape(1, 3))[0]


# Process-wide catalog, shared read-only by all callers
CATALOG = ColorCatalog(CANONICAL_COLORS)


def name_color(rgb: Sequence[float]) -> str:
    """Map one RGB color (0-255 per channel) to its canonical name."""
    return CATALOG.name_of(rgb)


def name_colors(colors_rgb: np.ndarray) -> List[str]:
    """Map an (N, 3) RGB array to canonical names."""
    return CATALOG.name_many(colors_rgb)
