"""
Chip catalog for ProbeScope.

Chip families and their variants are described by YAML target files.
The package ships a set of built-in targets under ``probescope/data/targets``;
more directories can be added with ``catalog.target_dirs`` in the
configuration. A target file looks like::

    name: STM32F4 Series
    manufacturer: STMicroelectronics
    variants:
      - name: STM32F401CBUx
        core: armv7em
        flash_kb: 128
        ram_kb: 64
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

import yaml

from probescope.core.errors import CatalogReadError

logger = logging.getLogger(__name__)

BUILTIN_TARGETS_DIR = Path(__file__).parent.parent / "data" / "targets"
TARGET_FILE_PATTERNS = ("*.yaml", "*.yml")


@dataclass(frozen=True)
class ChipVariant:
    """A single chip variant, e.g. ``STM32F401CBUx``."""
    name: str
    core: Optional[str] = None
    flash_kb: Optional[int] = None
    ram_kb: Optional[int] = None


@dataclass
class ChipFamily:
    """A family of related chip variants loaded from one target file."""
    name: str
    manufacturer: Optional[str] = None
    variants: List[ChipVariant] = field(default_factory=list)
    source: Optional[Path] = None


def parse_family(data: object, source: Optional[Path] = None) -> ChipFamily:
    """
    Build a ChipFamily from a parsed target document.

    Raises:
        CatalogReadError: If required keys are missing or malformed
    """
    where = source or "<target>"
    if not isinstance(data, dict):
        raise CatalogReadError(f"{where}: target description must be a mapping")

    name = data.get("name")
    variants = data.get("variants")
    if not isinstance(name, str) or not name:
        raise CatalogReadError(f"{where}: missing family 'name'")
    if not isinstance(variants, list):
        raise CatalogReadError(f"{where}: family '{name}' has no 'variants' list")

    family = ChipFamily(name=name, manufacturer=data.get("manufacturer"), source=source)
    for entry in variants:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise CatalogReadError(f"{where}: every variant of '{name}' needs a 'name'")
        family.variants.append(ChipVariant(
            name=entry["name"],
            core=entry.get("core"),
            flash_kb=entry.get("flash_kb"),
            ram_kb=entry.get("ram_kb"),
        ))
    return family


def load_family(path: Path) -> ChipFamily:
    """Load one YAML target file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise CatalogReadError(f"Cannot read target file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogReadError(f"Invalid YAML in target file {path}: {e}") from e
    return parse_family(data, source=path)


def _target_files(directory: Path) -> List[Path]:
    if not directory.is_dir():
        raise CatalogReadError(f"Target directory not found: {directory}")
    files: List[Path] = []
    for pattern in TARGET_FILE_PATTERNS:
        files.extend(directory.glob(pattern))
    return sorted(files)


class ChipCatalog:
    """
    Known chip families, in enumeration order.

    Built-in targets come first (sorted by file name), followed by each
    configured directory in the order given.
    """

    def __init__(self, target_dirs: Iterable[Path] = (), include_builtin: bool = True):
        self.target_dirs = [Path(d).expanduser() for d in target_dirs]
        self.include_builtin = include_builtin

    def directories(self) -> List[Path]:
        """Directories searched for target files."""
        dirs = [BUILTIN_TARGETS_DIR] if self.include_builtin else []
        return dirs + self.target_dirs

    def families(self) -> List[ChipFamily]:
        """
        Load every family of the catalog.

        Returns:
            List of chip families

        Raises:
            CatalogReadError: If any directory or target file cannot be read
        """
        families = []
        for directory in self.directories():
            for path in _target_files(directory):
                family = load_family(path)
                logger.debug(f"Loaded {len(family.variants)} variants of {family.name} from {path}")
                families.append(family)
        return families

    def variants(self) -> Iterator[ChipVariant]:
        """Iterate over every variant of every family."""
        for family in self.families():
            yield from family.variants

    def find_variant(self, name: str) -> Optional[ChipVariant]:
        """
        Look up a variant by name.

        Exact matches win; otherwise the match is case-insensitive.
        """
        fallback = None
        for variant in self.variants():
            if variant.name == name:
                return variant
            if fallback is None and variant.name.lower() == name.lower():
                fallback = variant
        return fallback

    @classmethod
    def from_config(cls) -> "ChipCatalog":
        """Build the catalog described by the current configuration."""
        from probescope.core.config import get_config

        catalog_config = get_config().catalog
        return cls(
            target_dirs=[Path(d) for d in catalog_config.target_dirs],
            include_builtin=catalog_config.include_builtin,
        )


def families(catalog: Optional[ChipCatalog] = None) -> Sequence[ChipFamily]:
    """
    List the chip families of the configured catalog.

    Raises:
        CatalogReadError: If the catalog cannot be read
    """
    return (catalog or ChipCatalog.from_config()).families()
