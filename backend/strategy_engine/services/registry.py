"""
Constituency Registry - the set of known constituencies and regional lookups.

This module provides:
1. The registry of assembly constituencies (id, name, district, region)
   loaded from the bundled CSV
2. Region and district profile tables used by the resolver's regional tier
3. Deterministic classification helpers (urban, border, tribal, minority areas)
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional
import logging

import pandas as pd

logger = logging.getLogger(__name__)

REGISTRY_FILE = "constituencies.csv"
REGIONAL_FILE = "regional_profiles.json"
REQUIRED_COLUMNS = ["constituency_id", "name", "district", "region"]


@dataclass(frozen=True)
class RegistryEntry:
    """One known constituency."""
    constituency_id: str
    name: str
    district: str
    region: str
    assembly_number: Optional[int] = None


class ConstituencyRegistry:
    """In-memory registry keyed by constituency id."""

    def __init__(self, entries: List[RegistryEntry]):
        self._entries: Dict[str, RegistryEntry] = {}
        for entry in entries:
            if entry.constituency_id in self._entries:
                logger.warning("Duplicate constituency id in registry: %s", entry.constituency_id)
                continue
            self._entries[entry.constituency_id] = entry

    @classmethod
    def from_csv(cls, file_path: Path) -> "ConstituencyRegistry":
        """
        Load the registry CSV.

        Expected columns:
        constituency_id, name, district, region, assembly_number (optional)
        """
        df = pd.read_csv(file_path, encoding="utf-8", dtype={"constituency_id": str})
        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise ValueError(f"{file_path.name} is missing columns: {', '.join(missing)}")

        entries: List[RegistryEntry] = []
        for idx, row in df.iterrows():
            cid = "" if pd.isna(row["constituency_id"]) else str(row["constituency_id"]).strip()
            if not cid:
                logger.warning("Row %s: missing constituency_id, skipped", idx)
                continue
            number = row.get("assembly_number")
            entries.append(RegistryEntry(
                constituency_id=cid,
                name=str(row["name"]).strip(),
                district=str(row["district"]).strip(),
                region=str(row["region"]).strip(),
                assembly_number=int(number) if number is not None and not pd.isna(number) else None,
            ))
        logger.info("Loaded %d constituencies from %s", len(entries), file_path.name)
        return cls(entries)

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "ConstituencyRegistry":
        return cls.from_csv(Path(data_dir) / REGISTRY_FILE)

    def get(self, constituency_id: str) -> Optional[RegistryEntry]:
        return self._entries.get(constituency_id)

    def __contains__(self, constituency_id: str) -> bool:
        return constituency_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def all(self) -> List[RegistryEntry]:
        return list(self._entries.values())

    def in_district(self, district: str) -> List[RegistryEntry]:
        wanted = district.strip().lower()
        return [e for e in self._entries.values() if e.district.lower() == wanted]

    def in_region(self, region: str) -> List[RegistryEntry]:
        return [e for e in self._entries.values() if e.region == region]


@dataclass
class RegionalProfiles:
    """
    Region and district tables for the resolver's same-region tier.

    All classifications are plain membership tests so the estimates are
    reproducible.
    """
    regions: Dict[str, Dict[str, float]] = field(default_factory=dict)
    districts: Dict[str, Dict[str, float]] = field(default_factory=dict)
    urban_districts: List[str] = field(default_factory=list)
    urban_keywords: List[str] = field(default_factory=list)
    border_districts: List[str] = field(default_factory=list)
    minority_districts: List[str] = field(default_factory=list)
    minority_keywords: List[str] = field(default_factory=list)
    tribal_districts: List[str] = field(default_factory=list)
    hill_districts: List[str] = field(default_factory=list)
    tea_regions: List[str] = field(default_factory=list)
    medium_impact_keywords: List[str] = field(default_factory=list)
    # community -> percent of the electorate
    community_shares: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_json(cls, file_path: Path) -> "RegionalProfiles":
        if not file_path.exists():
            logger.warning("Regional profile file not found: %s", file_path)
            return cls()
        with file_path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in payload.items() if k in known})

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "RegionalProfiles":
        return cls.from_json(Path(data_dir) / REGIONAL_FILE)

    def region_value(self, region: str, key: str) -> Optional[float]:
        return self.regions.get(region, {}).get(key)

    def district_value(self, district: str, key: str) -> Optional[float]:
        return self.districts.get(district, {}).get(key)

    def is_urban(self, district: str, name: str) -> bool:
        return district in self.urban_districts or any(k in name for k in self.urban_keywords)

    def is_border(self, district: str) -> bool:
        return district in self.border_districts

    def is_minority_dominated(self, district: str, name: str) -> bool:
        return district in self.minority_districts or any(k in name for k in self.minority_keywords)

    def is_tribal(self, district: str) -> bool:
        return district in self.tribal_districts

    def is_hill(self, district: str) -> bool:
        return district in self.hill_districts

    def is_tea_belt(self, region: str) -> bool:
        return region in self.tea_regions

    def is_medium_impact(self, district: str) -> bool:
        return any(k in district for k in self.medium_impact_keywords)
