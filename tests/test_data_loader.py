"""Tests for the species catalog loader."""
import json
import pytest

from src.arena.data_loader import SpeciesCatalog, load_catalog
from src.arena.enums import Rarity, Tribe


@pytest.fixture
def catalog():
    """Load the bundled catalog."""
    return load_catalog()


class TestSpeciesCatalog:
    """Tests for catalog loading."""

    def test_load_all(self, catalog):
        assert len(catalog.species) == 8
        assert len(catalog.parties["player"]) == 4
        assert len(catalog.parties["enemy"]) == 4

    def test_species_stats(self, catalog):
        wolf = catalog.get_species("gale-wolf")

        assert wolf.name == "Gale Wolf"
        assert (wolf.hp, wolf.attack, wolf.defense, wolf.speed) == (80, 30, 15, 28)
        assert (wolf.mp, wolf.evasion, wolf.movement) == (20, 15, 3)
        assert wolf.tribe == Tribe.BEAST
        assert wolf.rarity == Rarity.COMMON
        assert [s.id for s in wolf.skills] == ["bite", "gale-slash", "charge"]

    def test_skill_defaults(self, catalog):
        bite = catalog.get_species("gale-wolf").skills[0]

        assert bite.range == 1
        assert bite.cost == 0
        assert bite.piercing is False
        assert bite.defense_penetration == 0.0
        assert bite.is_heal is False

    def test_heal_skill(self, catalog):
        lamp = catalog.get_species("wisp-lantern").skills[-1]

        assert lamp.is_heal
        assert lamp.heal_amount == 20
        assert lamp.piercing
        assert lamp.cost == 10

    def test_every_species_has_a_free_skill(self, catalog):
        for species in catalog.species.values():
            assert any(s.cost == 0 and not s.is_heal for s in species.skills), species.id

    def test_unknown_species(self, catalog):
        assert catalog.get_species("missingno") is None

    def test_get_roster(self, catalog):
        roster = catalog.get_roster(["wyvern", "wyvern"])
        assert [s.id for s in roster] == ["wyvern", "wyvern"]
        assert catalog.get_roster(["wyvern", "missingno"]) is None

    def test_party_rosters(self, catalog):
        assert [s.id for s in catalog.player_roster()] == [
            "gale-wolf", "stoneshell-crab", "wisp-lantern", "young-dragon"
        ]
        assert [s.id for s in catalog.enemy_roster()] == [
            "starving-wolf", "ironwall-turtle", "shadow-spider", "wyvern"
        ]

    def test_custom_catalog(self, tmp_path):
        path = tmp_path / "species.json"
        path.write_text(json.dumps({
            "species": {
                "slime": {
                    "name": "Slime",
                    "stats": {"hp": 30, "attack": 5, "defense": 2, "speed": 3, "movement": 1},
                    "skills": [{"id": "bounce"}]
                }
            }
        }), encoding="utf-8")

        catalog = SpeciesCatalog(path).load_all()
        slime = catalog.get_species("slime")

        assert slime.mp == 0
        assert slime.skills[0].name == "bounce"
        assert catalog.player_roster() == []

    def test_malformed_catalog_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(json.JSONDecodeError):
            SpeciesCatalog(path).load_all()

    def test_missing_stat_raises(self, tmp_path):
        path = tmp_path / "partial.json"
        path.write_text(json.dumps({"species": {"ghost": {"stats": {"hp": 10}}}}), encoding="utf-8")

        with pytest.raises(KeyError):
            SpeciesCatalog(path).load_all()
