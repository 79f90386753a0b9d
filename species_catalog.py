"""
Species catalog.

An ordered list of Species records (index 0 reserved and empty) plus the
evolution edges wired between them.  Cosmetic variants copy their base form's
power level and typing when added and are never offered for selection.
"""

from typing import Dict, List, Optional

from enums import EvolutionMethod, FormCategory, Type


class EvolutionEdge:
    __slots__ = ("source", "target", "carries_base_stats", "method")

    def __init__(self, source, target, carries_base_stats=True, method=EvolutionMethod.LEVEL):
        self.source = source
        self.target = target
        self.carries_base_stats = carries_base_stats
        self.method = method

    def __repr__(self):
        return f"EvolutionEdge({self.source.name} -> {self.target.name})"


class Species:
    def __init__(self, id: int, name: str, primary_type: Type, secondary_type: Optional[Type] = None,
                 power_level: int = 0, is_legendary=False, is_ultra_beast=False, base_form=None,
                 form_category: Optional[FormCategory] = None, is_irregular_forme=False):
        self.id = id
        self.name = name
        self.primary_type = primary_type
        # Mono-typed species are stored with type2 == type1 in game data
        self.secondary_type = secondary_type if secondary_type != primary_type else None
        self.power_level = power_level
        self.is_legendary = is_legendary
        self.is_ultra_beast = is_ultra_beast
        self.base_form = base_form
        self.form_category = form_category
        self.is_irregular_forme = is_irregular_forme
        self.evolves_to: List[EvolutionEdge] = []
        self.evolves_from: List[EvolutionEdge] = []

    @property
    def is_cosmetic_variant(self):
        return self.form_category == FormCategory.COSMETIC and self.base_form is not None

    @property
    def types(self):
        return (self.primary_type,) if self.secondary_type is None else (self.primary_type, self.secondary_type)

    def has_type(self, t):
        return t == self.primary_type or t == self.secondary_type

    def shares_any_types(self, others):
        return any(self.has_type(t) for other in others for t in other.types)

    def __eq__(self, other):
        return isinstance(other, Species) and other.id == self.id

    def __hash__(self):
        return hash(self.id)

    def __lt__(self, other):
        return self.id < other.id

    def __repr__(self):
        return f"Species({self.id}, {self.name!r}, pwr={self.power_level})"


class SpeciesCatalog:
    """Ordered species list; ``data[0]`` is always None."""

    def __init__(self):
        self.data: List[Optional[Species]] = [None]
        self._by_id: Dict[int, Species] = {}
        self._by_name: Dict[str, List[Species]] = {}

    def __len__(self):
        return len(self._by_id)

    def __iter__(self):
        return iter(self.all_species())

    def __getitem__(self, species_id):
        return self.get(species_id)

    def __contains__(self, species):
        return getattr(species, "id", species) in self._by_id

    def add(self, species: Species) -> Species:
        if species.id in self._by_id or species.id == 0:
            raise ValueError(f"Duplicate or reserved species id {species.id}")
        if species.is_cosmetic_variant:
            base = species.base_form
            species.power_level = base.power_level
            species.primary_type = base.primary_type
            species.secondary_type = base.secondary_type
        self.data.append(species)
        self._by_id[species.id] = species
        self._by_name.setdefault(species.name.lower(), []).append(species)
        return species

    def add_evolution(self, source, target, carries_base_stats=True, method=EvolutionMethod.LEVEL):
        source = self.get(getattr(source, "id", source))
        target = self.get(getattr(target, "id", target))
        edge = EvolutionEdge(source, target, carries_base_stats, method)
        source.evolves_to.append(edge)
        target.evolves_from.append(edge)
        return edge

    def get(self, species_id) -> Species:
        try:
            return self._by_id[species_id]
        except KeyError:
            raise KeyError(f"Unknown species id {species_id}") from None

    def by_name(self, name) -> Species:
        matches = self._by_name.get(name.lower())
        if not matches:
            raise KeyError(f"Unknown species name {name!r}")
        return matches[0]

    def all_species(self) -> List[Species]:
        """Every species in catalog order, without the reserved slot."""
        return [s for s in self.data if s is not None]

    def cosmetic_variants_of(self, species) -> List[Species]:
        base = species.base_form if species.is_cosmetic_variant else species
        return [s for s in self.all_species() if s.is_cosmetic_variant and s.base_form == base]

    def pick_cosmetic_variant(self, species, rng):
        """Species or one of its cosmetic variants, chosen uniformly."""
        options = [species] + self.cosmetic_variants_of(species)
        if len(options) == 1:
            return species
        return rng.choice(options)

    def types_present(self):
        present = set()
        for s in self.all_species():
            present.update(s.types)
        return present
