"""
Configuration for gRNA lookup.

Configuration is loaded once from YAML and is immutable afterwards;
concurrent requests share it read-only.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from .core.annotate import CUT_OFFSET
from .core.regions import MAX_REGION_SIZE
from .errors import ConfigError

DatabaseKey = Tuple[str, str]  # (organism, enzyme)

CONFIG_TEMPLATE = '''# grna-lookup configuration template
# Edit this file to point at your guide databases and annotations

# Directory prepended to every relative database path
database_path_prefix: /data/guides

# One entry per organism/enzyme guide database (indexed BAM)
databases:
  - organism: hg38
    enzyme: cas9
    path: hg38_cas9.bam
    # offset: 1         # added to positions of 0-indexed legacy databases

# Gene annotation tables (TSV: chromosome, start, end, gene_id, gene_symbol, feature)
annotations:
  hg38: /data/annotations/hg38.tsv

# Largest summed region span per request (bp)
max_region_size: 10000000

# Distance from the guide edge to the nuclease cut site (bp)
cut_offset: 6

# Concurrent region lookups
threads: 4
'''


def _frozen(d: Dict) -> Mapping:
    return MappingProxyType(dict(d))


@dataclass(frozen=True)
class LookupConfig:
    """Immutable lookup configuration."""
    database_path_prefix: Path = Path('.')
    database_paths: Mapping[DatabaseKey, str] = field(default_factory=lambda: _frozen({}))
    database_offsets: Mapping[DatabaseKey, int] = field(default_factory=lambda: _frozen({}))
    annotation_paths: Mapping[str, str] = field(default_factory=lambda: _frozen({}))
    max_region_size: int = MAX_REGION_SIZE
    cut_offset: int = CUT_OFFSET
    threads: int = 4

    def has_database(self, organism: str, enzyme: str) -> bool:
        """True if the organism and enzyme have a configured database."""
        return (organism, enzyme) in self.database_paths

    def get_database_path(self, organism: str, enzyme: str) -> Optional[Path]:
        """Full path of the guide database, or None if not configured."""
        rel = self.database_paths.get((organism, enzyme))
        if rel is None:
            return None
        return self.database_path_prefix / rel

    def get_database_offset(self, organism: str, enzyme: str) -> int:
        """Offset added to observed positions to get true 1-based positions."""
        return self.database_offsets.get((organism, enzyme), 0)

    @property
    def databases(self) -> List[DatabaseKey]:
        return sorted(self.database_paths)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LookupConfig':
        """Create from a dictionary as loaded from YAML."""
        paths = {}
        offsets = {}
        for entry in data.get('databases') or []:
            try:
                key = (str(entry['organism']), str(entry['enzyme']))
                paths[key] = str(entry['path'])
            except (KeyError, TypeError):
                raise ConfigError(f"Database entry needs organism, enzyme and path: {entry!r}")
            if key in offsets:
                raise ConfigError(f"Duplicate database entry for {key[0]}/{key[1]}")
            offsets[key] = int(entry.get('offset', 0))

        threads = int(data.get('threads', 4))
        if threads < 1:
            raise ConfigError(f"threads must be >= 1, got {threads}")

        return cls(
            database_path_prefix=Path(data.get('database_path_prefix', '.')),
            database_paths=_frozen(paths),
            database_offsets=_frozen(offsets),
            annotation_paths=_frozen({str(k): str(v) for k, v in (data.get('annotations') or {}).items()}),
            max_region_size=int(data.get('max_region_size', MAX_REGION_SIZE)),
            cut_offset=int(data.get('cut_offset', CUT_OFFSET)),
            threads=threads,
        )

    @classmethod
    def from_yaml(cls, path: Path) -> 'LookupConfig':
        """Load configuration from YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")

        return cls.from_dict(data)


def write_config_template(output_path: Path):
    """Write a template configuration file."""
    with open(output_path, 'w') as f:
        f.write(CONFIG_TEMPLATE)
