#!/usr/bin/env python3
"""
Pokemon Behavior Templates

Builds entity behavior component groups for Pokemon from a small movement
table. Every Pokemon shares one set of base components; its locomotion
style (terrestrial, aquatic, semiaquatic, volant or levitating) contributes
the movement group, extra families and mount extras on top of it.

Component names match the keys of the generated EntityComponents interface
(see schema_compiler.py).

Usage:
    python behaviors.py <name> <primary_type> [secondary_type]
"""

import json
import sys
from typing import Dict, List, Any, Optional, Tuple, Union
from dataclasses import dataclass, field

# Settings
SCRIPT_NAME = "behaviors.py"
TYPE_ID_PREFIX = "pokemon:"
DEFAULT_HITBOX = (1, 1.5)
BASE_HEALTH = 20

POKEMON_TYPES = (
    'normal', 'fire', 'water', 'electric', 'grass', 'ice',
    'fighting', 'poison', 'ground', 'flying', 'psychic', 'bug',
    'rock', 'ghost', 'dragon', 'dark', 'steel', 'fairy',
)

ComponentGroup = Dict[str, Any]
Hitbox = Union[None, float, Tuple[float, float]]


class BehaviorError(Exception):
    """Base class for behavior template errors"""


class UnknownPokemonType(BehaviorError):
    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(f"Unknown Pokemon type: {type_name}")


class UnknownLocomotion(BehaviorError):
    def __init__(self, locomotion: str, name: str):
        self.locomotion = locomotion
        self.name = name
        super().__init__(f"{name}: unknown locomotion '{locomotion}'")


@dataclass
class RideableData:
    """Seat configuration of a mount"""
    seat_position: Tuple[float, float, float]
    seat_count: Optional[int] = None


@dataclass
class MovementData:
    """One entry of the movement table; unset speeds fall back to the variant's default"""
    locomotion: str
    walk_speed: Optional[float] = None
    swim_speed: Optional[float] = None
    fly_speed: Optional[float] = None
    float_speed: Optional[float] = None
    can_breathe_underwater: Optional[bool] = None
    hitbox: Hitbox = None


@dataclass
class TypeInfo:
    primary: str
    secondary: Optional[str] = None


@dataclass
class PokemonConfig:
    """Everything the base components are built from"""
    type_id: str
    primary_type: str
    secondary_type: Optional[str] = None
    hitbox: Hitbox = None
    fire_immune: Optional[bool] = None
    families: List[str] = field(default_factory=list)
    additional_components: ComponentGroup = field(default_factory=dict)
    rideable: Optional[RideableData] = None


@dataclass
class Locomotion:
    """What a locomotion style adds to the base entity"""
    movement: ComponentGroup
    families: List[str] = field(default_factory=list)
    mount_families: List[str] = field(default_factory=list)
    mount_components: ComponentGroup = field(default_factory=dict)
    resets_levitation: bool = False


@dataclass
class BehaviorOutput:
    identifier: str
    components: ComponentGroup
    component_groups: Dict[str, ComponentGroup]
    events: Dict[str, Any]
    families: List[str]
    animations: Optional[Dict[str, str]] = None
    scripts: Optional[Dict[str, List[str]]] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'identifier': self.identifier,
            'components': self.components,
            'componentGroups': self.component_groups,
            'events': self.events,
            'families': self.families,
        }
        if self.animations is not None:
            result['animations'] = self.animations
        if self.scripts is not None:
            result['scripts'] = self.scripts
        return result


def default(value, fallback):
    return fallback if value is None else value


def resolve_hitbox(hitbox: Hitbox) -> Tuple[float, float]:
    """Turn a hitbox setting into a (width, height) pair"""
    if not hitbox:
        return DEFAULT_HITBOX
    if isinstance(hitbox, (int, float)):
        return (hitbox, hitbox)
    width, height = hitbox
    return (width, height)


# Locomotion styles

def look_around() -> ComponentGroup:
    return {
        "minecraft:behavior.look_at_player": {"priority": 7, "look_distance": 8.0},
        "minecraft:behavior.random_look_around": {"priority": 8},
    }


LEVITATION_RESET = {"reset_levitation": "controller.animation.reset_levitation"}


def walking(walk_speed: float = 0.25) -> Locomotion:
    return Locomotion(
        movement={
            "minecraft:movement": {"value": walk_speed},
            "minecraft:movement.generic": {"max_turn": 10.0},
            "minecraft:navigation.generic": {
                "avoid_damage_blocks": True,
                "avoid_portals": True,
                "can_jump": True,
                "can_walk": True,
                "can_pass_doors": True,
            },
            "minecraft:behavior.float": {"priority": 0},
            "minecraft:behavior.random_stroll": {"priority": 6, "speed_multiplier": 1.0},
            **look_around(),
        },
        mount_families=["rideable", "walkable"],
        mount_components={
            "minecraft:can_power_jump": {},
            "minecraft:horse.jump_strength": {"value": {"range_min": 0, "range_max": 1}},
        },
    )


def swimming(swim_speed: float = 0.2, walk_speed: float = 0.2,
             can_breathe_underwater: bool = True, avoids_land: bool = False) -> Locomotion:
    """Water movement; `avoids_land` keeps the entity in the water entirely"""
    movement = {
        "minecraft:movement.generic": {"max_turn": 10.0},
        "minecraft:underwater_movement": {"value": swim_speed},
        "minecraft:breathable": {
            "breathes_air": not avoids_land,
            "breathes_water": can_breathe_underwater,
            "suffocate_time": 0,
            "total_supply": 15,
        },
        "minecraft:navigation.generic": {
            "avoid_damage_blocks": True,
            "avoid_portals": True,
            "can_swim": True,
            "can_walk": not avoids_land,
            "can_sink": False,
            "is_amphibious": can_breathe_underwater and not avoids_land,
        },
        "minecraft:behavior.swim_idle": {"priority": 5, "idle_time": 5.0, "success_rate": 0.1},
        "minecraft:behavior.random_swim": {
            "priority": 3,
            "speed_multiplier": 1.0,
            "xz_dist": 16,
            "y_dist": 4,
            "interval": 0,
        },
        **look_around(),
    }

    if not avoids_land and walk_speed > 0:
        movement["minecraft:movement"] = {"value": walk_speed}
        movement["minecraft:behavior.random_stroll"] = {"priority": 6, "speed_multiplier": 1.0}

    if avoids_land:
        movement["minecraft:behavior.move_to_water"] = {
            "priority": 1,
            "search_range": 15,
            "search_height": 5,
        }

    return Locomotion(
        movement=movement,
        families=["swimming"],
        mount_families=["rideable", "swimmable"],
        mount_components={
            "minecraft:can_power_jump": {},
            "minecraft:horse.jump_strength": {"value": 0},
        },
        resets_levitation=True,
    )


def random_fly(xz_dist: int, y_dist: int, speed_multiplier: float, can_land_on_trees: bool) -> Dict[str, Any]:
    return {
        "priority": 2,
        "xz_dist": xz_dist,
        "y_dist": y_dist,
        "y_offset": 0,
        "speed_multiplier": speed_multiplier,
        "can_land_on_trees": can_land_on_trees,
        "avoid_damage_blocks": True,
    }


def air_movement(speed: float, wander: Dict[str, Any]) -> ComponentGroup:
    return {
        "minecraft:movement.generic": {"max_turn": 10.0},
        "minecraft:flying_speed": {"value": speed},
        "minecraft:can_fly": {},
        "minecraft:navigation.fly": {
            "avoid_damage_blocks": True,
            "avoid_portals": True,
            "can_path_from_air": True,
        },
        "minecraft:behavior.random_fly": wander,
        **look_around(),
    }


def flying(fly_speed: float = 1.0, can_land_on_trees: bool = True) -> Locomotion:
    return Locomotion(
        movement=air_movement(fly_speed, random_fly(15, 1, 1.0, can_land_on_trees)),
        families=["flying"],
        mount_families=["rideable", "flyable"],
        mount_components={
            "minecraft:can_power_jump": {},
            "minecraft:horse.jump_strength": {"value": 0},
        },
        resets_levitation=True,
    )


def levitating(float_speed: float = 0.5) -> Locomotion:
    # Hovering never perches, and mounts get only the shared seat components
    return Locomotion(
        movement=air_movement(float_speed, random_fly(10, 2, 0.8, False)),
        families=["levitating"],
    )


def terrestrial_locomotion(data: MovementData) -> Locomotion:
    return walking(default(data.walk_speed, 0.25))


def aquatic_locomotion(data: MovementData) -> Locomotion:
    return swimming(
        swim_speed=default(data.swim_speed, 0.2),
        walk_speed=0,
        can_breathe_underwater=True,
        avoids_land=True,
    )


def semiaquatic_locomotion(data: MovementData) -> Locomotion:
    return swimming(
        swim_speed=default(data.swim_speed, 0.2),
        walk_speed=default(data.walk_speed, 0.2),
        can_breathe_underwater=default(data.can_breathe_underwater, True),
        avoids_land=False,
    )


def volant_locomotion(data: MovementData) -> Locomotion:
    return flying(default(data.fly_speed, 1.0))


def levitating_locomotion(data: MovementData) -> Locomotion:
    return levitating(default(data.float_speed, 0.5))


LOCOMOTIONS = {
    'terrestrial': terrestrial_locomotion,
    'aquatic': aquatic_locomotion,
    'semiaquatic': semiaquatic_locomotion,
    'volant': volant_locomotion,
    'levitating': levitating_locomotion,
}


# Shared base

def is_fire_immune(config: PokemonConfig) -> bool:
    if config.fire_immune is not None:
        return config.fire_immune
    return 'fire' in (config.primary_type, config.secondary_type)


def build_families(config: PokemonConfig, locomotion: Locomotion) -> List[str]:
    families = ["pokemon", "mob", config.primary_type]
    if config.secondary_type:
        families.append(config.secondary_type)
    families.extend(config.families)
    families.extend(locomotion.families)
    if config.rideable:
        families.extend(locomotion.mount_families)
    return families


def build_base_components(config: PokemonConfig, families: List[str]) -> ComponentGroup:
    width, height = resolve_hitbox(config.hitbox)
    components = {
        "minecraft:type_family": {"family": families},
        "minecraft:collision_box": {"width": width, "height": height},
        "minecraft:health": {"value": BASE_HEALTH, "max": BASE_HEALTH},
        "minecraft:physics": {},
        "minecraft:pushable": {"is_pushable": True, "is_pushable_by_piston": True},
    }
    if is_fire_immune(config):
        components["minecraft:fire_immune"] = {}
    components.update(config.additional_components)
    return components


def build_tamed_group(rideable: Optional[RideableData], locomotion: Locomotion) -> ComponentGroup:
    if not rideable:
        return {}
    return {
        "minecraft:is_saddled": {},
        "minecraft:rideable": {
            "seat_count": default(rideable.seat_count, 1),
            "crouching_skip_interact": True,
            "family_types": ["player"],
            "interact_text": "action.interact.mount",
            "seats": {"position": list(rideable.seat_position)},
        },
        "minecraft:input_ground_controlled": {},
        "minecraft:behavior.player_ride_tamed": {},
        **locomotion.mount_components,
    }


def build_behavior(config: PokemonConfig, locomotion: Locomotion) -> BehaviorOutput:
    """Compose the shared base components with one locomotion style"""
    for type_name in (config.primary_type, config.secondary_type):
        if type_name is not None and type_name not in POKEMON_TYPES:
            raise UnknownPokemonType(type_name)

    families = build_families(config, locomotion)
    output = BehaviorOutput(
        identifier=config.type_id,
        components=build_base_components(config, families),
        component_groups={
            'movement': dict(locomotion.movement),
            'tamed': build_tamed_group(config.rideable, locomotion),
            'wild': {},
        },
        events={
            "minecraft:entity_spawned": {"add": {"component_groups": ["wild", "movement"]}},
        },
        families=families,
    )

    if config.rideable and locomotion.resets_levitation:
        output.animations = dict(LEVITATION_RESET)
        output.scripts = {'animate': list(LEVITATION_RESET)}

    return output


# Registry

POKEMON_MOVEMENT: Dict[str, MovementData] = {
    # Terrestrial
    'bulbasaur': MovementData('terrestrial', walk_speed=0.2),
    'venusaur': MovementData('terrestrial', walk_speed=0.15, hitbox=2),
    'charmander': MovementData('terrestrial', walk_speed=0.25),
    'pikachu': MovementData('terrestrial', walk_speed=0.3, hitbox=(0.7, 1.3)),
    'raichu': MovementData('terrestrial', walk_speed=0.35),
    'vulpix': MovementData('terrestrial', walk_speed=0.25),
    'ninetales': MovementData('terrestrial', walk_speed=0.3, hitbox=(1.2, 1.3)),
    'growlithe': MovementData('terrestrial', walk_speed=0.3),
    'arcanine': MovementData('terrestrial', walk_speed=0.4, hitbox=(1.8, 2)),
    'machamp': MovementData('terrestrial', walk_speed=0.25, hitbox=(1.5, 1.8)),
    'ponyta': MovementData('terrestrial', walk_speed=0.35),
    'rapidash': MovementData('terrestrial', walk_speed=0.45, hitbox=(1.5, 2)),
    'dodrio': MovementData('terrestrial', walk_speed=0.45, hitbox=(1.5, 2)),
    'onix': MovementData('terrestrial', walk_speed=0.2, hitbox=(1.5, 3)),
    'rhydon': MovementData('terrestrial', walk_speed=0.2, hitbox=(1.8, 2)),
    'tauros': MovementData('terrestrial', walk_speed=0.35, hitbox=1.5),
    'eevee': MovementData('terrestrial', walk_speed=0.3, hitbox=(0.6, 0.8)),
    'flareon': MovementData('terrestrial', walk_speed=0.35),
    'snorlax': MovementData('terrestrial', walk_speed=0.1, hitbox=(2, 2.5)),

    # Volant
    'butterfree': MovementData('volant', fly_speed=0.7),
    'pidgey': MovementData('volant', fly_speed=0.8, walk_speed=0.2),
    'pidgeot': MovementData('volant', fly_speed=1.2, walk_speed=0.25, hitbox=(1.5, 1.8)),
    'zubat': MovementData('volant', fly_speed=0.8),
    'charizard': MovementData('volant', fly_speed=1.0, walk_speed=0.15, hitbox=(1.5, 2.65)),
    'aerodactyl': MovementData('volant', fly_speed=1.3, hitbox=2),
    'moltres': MovementData('volant', fly_speed=1.2, hitbox=(2, 2.5)),
    'dragonite': MovementData('volant', fly_speed=1.1, walk_speed=0.2, hitbox=(2, 2.5)),

    # Aquatic
    'magikarp': MovementData('aquatic', swim_speed=0.1, hitbox=0.8),
    'goldeen': MovementData('aquatic', swim_speed=0.2),
    'staryu': MovementData('aquatic', swim_speed=0.2),
    'tentacruel': MovementData('aquatic', swim_speed=0.25, hitbox=(1.5, 1.8)),

    # Semiaquatic
    'squirtle': MovementData('semiaquatic', walk_speed=0.2, swim_speed=0.25),
    'blastoise': MovementData('semiaquatic', walk_speed=0.2, swim_speed=0.3, hitbox=(1.8, 2)),
    'psyduck': MovementData('semiaquatic', walk_speed=0.2, swim_speed=0.2),
    'gyarados': MovementData('semiaquatic', walk_speed=0.1, swim_speed=0.35, hitbox=(2, 3.3)),
    'lapras': MovementData('semiaquatic', walk_speed=0.1, swim_speed=0.25, hitbox=2.5),
    'vaporeon': MovementData('semiaquatic', walk_speed=0.25, swim_speed=0.35),
    'dratini': MovementData('semiaquatic', walk_speed=0.15, swim_speed=0.2),
    'dragonair': MovementData('semiaquatic', walk_speed=0.2, swim_speed=0.25, hitbox=(1.5, 2)),

    # Levitating
    'gastly': MovementData('levitating', float_speed=0.5),
    'haunter': MovementData('levitating', float_speed=0.6),
    'gengar': MovementData('levitating', float_speed=0.6, hitbox=1.5),
    'magnemite': MovementData('levitating', float_speed=0.5),
    'voltorb': MovementData('levitating', float_speed=0.4),
    'koffing': MovementData('levitating', float_speed=0.4),
    'mewtwo': MovementData('levitating', float_speed=0.8, hitbox=(1.5, 2.5)),
    'mew': MovementData('levitating', float_speed=0.7, hitbox=(0.6, 0.8)),
}

RIDEABLE_POKEMON: Dict[str, RideableData] = {
    # Land
    'arcanine': RideableData((0, 1.8, 0)),
    'rapidash': RideableData((0, 1.8, 0)),
    'dodrio': RideableData((0, 1.8, 0)),
    'tauros': RideableData((0, 1.5, 0)),
    'rhydon': RideableData((0, 2, 0)),
    # Air
    'charizard': RideableData((0, 2.5, 0.3)),
    'pidgeot': RideableData((0, 1.5, 0)),
    'aerodactyl': RideableData((0, 1.8, 0)),
    'moltres': RideableData((0, 2, 0)),
    'dragonite': RideableData((0, 2.2, 0)),
    # Water
    'lapras': RideableData((0, 2.0, 0)),
    'gyarados': RideableData((0, 3.0, -0.5)),
    'blastoise': RideableData((0, 1.8, -0.3)),
}


def is_rideable(name: str) -> bool:
    return name.lower() in RIDEABLE_POKEMON


def get_rideable_data(name: str) -> Optional[RideableData]:
    return RIDEABLE_POKEMON.get(name.lower())


def get_all_pokemon_names() -> List[str]:
    return list(POKEMON_MOVEMENT)


def has_pokemon(name: str) -> bool:
    return name.lower() in POKEMON_MOVEMENT


def get_locomotion_type(name: str) -> Optional[str]:
    data = POKEMON_MOVEMENT.get(name.lower())
    return data.locomotion if data else None


def generate_from_movement(name: str, data: MovementData, types: TypeInfo) -> BehaviorOutput:
    if data.locomotion not in LOCOMOTIONS:
        raise UnknownLocomotion(data.locomotion, name)
    config = PokemonConfig(
        type_id=f"{TYPE_ID_PREFIX}{name}",
        primary_type=types.primary,
        secondary_type=types.secondary,
        hitbox=data.hitbox,
        rideable=RIDEABLE_POKEMON.get(name),
    )
    return build_behavior(config, LOCOMOTIONS[data.locomotion](data))


def generate_behavior(name: str, types: TypeInfo) -> Optional[BehaviorOutput]:
    """Generate the behavior of one registered Pokemon, or None when it is not registered"""
    name = name.lower()
    data = POKEMON_MOVEMENT.get(name)
    if data is None:
        return None
    return generate_from_movement(name, data, types)


def generate_all_behaviors(type_map: Dict[str, TypeInfo]) -> Dict[str, BehaviorOutput]:
    """Generate every registered Pokemon that has type information"""
    behaviors = {}
    for name, data in POKEMON_MOVEMENT.items():
        types = type_map.get(name)
        if types is None:
            print(f"No type info for {name}, skipping")
            continue
        behaviors[name] = generate_from_movement(name, data, types)
    return behaviors


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if len(args) not in (2, 3):
        print(f"Usage: python {SCRIPT_NAME} <name> <primary_type> [secondary_type]")
        return 1

    types = TypeInfo(*args[1:])
    try:
        behavior = generate_behavior(args[0], types)
    except BehaviorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if behavior is None:
        print(f"Unknown Pokemon: {args[0]}")
        return 1

    print(json.dumps(behavior.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
