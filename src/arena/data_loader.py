"""Data loader for the species catalog."""
from __future__ import annotations
import json
from pathlib import Path
from typing import Optional, Sequence
import logging

from .enums import Rarity, Tribe
from .models import Skill, Species

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "species.json"


class SpeciesCatalog:
    """Loads and parses species and skills from a JSON catalog."""

    def __init__(self, catalog_path: str | Path = DEFAULT_CATALOG_PATH):
        self.catalog_path = Path(catalog_path)

        # Loaded data
        self.species: dict[str, Species] = {}
        self.parties: dict[str, list[str]] = {}

    def load_all(self) -> "SpeciesCatalog":
        """Load all species and party definitions."""
        data = self._load_json()
        self._load_species(data)
        self._load_parties(data)
        logger.debug("Loaded %d species from %s", len(self.species), self.catalog_path)
        return self

    def _load_json(self) -> dict:
        """Load the catalog file."""
        with open(self.catalog_path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def _parse_skill(self, data: dict) -> Skill:
        return Skill(
            id=data["id"],
            name=data.get("name", data["id"]),
            range=data.get("range", 1),
            piercing=data.get("piercing", False),
            defense_penetration=data.get("defense_penetration", 0.0),
            cost=data.get("cost", 0),
            power=data.get("power", 1.0),
            is_heal=data.get("is_heal", False),
            heal_amount=data.get("heal_amount", 0),
        )

    def _load_species(self, data: dict) -> None:
        """Parse every species entry."""
        for species_id, entry in data.get("species", {}).items():
            stats = entry["stats"]
            self.species[species_id] = Species(
                id=species_id,
                name=entry.get("name", species_id),
                hp=stats["hp"],
                attack=stats["attack"],
                defense=stats["defense"],
                speed=stats["speed"],
                mp=stats.get("mp", 0),
                evasion=stats.get("evasion", 0),
                movement=stats["movement"],
                skills=tuple(self._parse_skill(s) for s in entry.get("skills", [])),
                tribe=Tribe(entry.get("tribe", Tribe.BEAST.value)),
                rarity=Rarity(entry.get("rarity", Rarity.COMMON.value)),
            )

    def _load_parties(self, data: dict) -> None:
        for side, species_ids in data.get("parties", {}).items():
            self.parties[side] = list(species_ids)

    def get_species(self, species_id: str) -> Optional[Species]:
        """Get species by ID."""
        return self.species.get(species_id)

    def get_roster(self, species_ids: Sequence[str]) -> Optional[list[Species]]:
        """Resolve a list of species ids; None if any id is unknown."""
        roster = []
        for species_id in species_ids:
            species = self.get_species(species_id)
            if species is None:
                logger.warning("Unknown species id: %s", species_id)
                return None
            roster.append(species)
        return roster

    def player_roster(self) -> list[Species]:
        """Default player party."""
        return self.get_roster(self.parties.get("player", [])) or []

    def enemy_roster(self) -> list[Species]:
        """Default enemy party."""
        return self.get_roster(self.parties.get("enemy", [])) or []


def load_catalog(catalog_path: str | Path = DEFAULT_CATALOG_PATH) -> SpeciesCatalog:
    """Create and load a catalog in one call."""
    return SpeciesCatalog(catalog_path).load_all()
