"""Generated tournament aliases ("Tigre Rojo") and their emoji avatars."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import replace

from .models import Participant

ANIMALS: tuple[str, ...] = (
    "Tigre", "León", "Elefante", "Jirafa", "Delfín", "Águila", "Lobo",
    "Zorro", "Oso", "Búho", "Panda", "Koala", "Cebra", "Pingüino", "Tortuga",
    "Camaleón", "Jaguar", "Rinoceronte", "Mapache", "Canguro", "Loro", "Alce",
    "Camello", "Cocodrilo", "Puma", "Gorila", "Hipopótamo", "Foca", "Nutria",
    "Tucán",
)  # fmt: skip

COLORS: tuple[str, ...] = (
    "Rojo", "Azul", "Verde", "Amarillo", "Naranja", "Morado", "Rosa",
    "Turquesa", "Dorado", "Plateado", "Negro", "Blanco", "Marrón", "Gris",
    "Celeste", "Violeta", "Coral", "Cian", "Magenta", "Lima",
)  # fmt: skip

ANIMAL_EMOJIS: dict[str, str] = {
    "Tigre": "🐯", "León": "🦁", "Elefante": "🐘", "Jirafa": "🦒",
    "Delfín": "🐬", "Águila": "🦅", "Lobo": "🐺", "Zorro": "🦊",
    "Oso": "🐻", "Búho": "🦉", "Panda": "🐼", "Koala": "🐨",
    "Cebra": "🦓", "Pingüino": "🐧", "Tortuga": "🐢", "Camaleón": "🦎",
    "Loro": "🦜", "Cocodrilo": "🐊", "Gorila": "🦍", "Hipopótamo": "🦛",
    "Foca": "🦭", "Nutria": "🦦", "Tucán": "🦤",
}  # fmt: skip

FALLBACK_AVATAR = "🐾"


def avatar_for(animal: str) -> str:
    return ANIMAL_EMOJIS.get(animal, FALLBACK_AVATAR)


def generate_aliases(
    count: int, rng: random.Random | None = None
) -> list[tuple[str, str]]:
    """Return ``count`` (alias, avatar) pairs, unique while combinations last."""
    if count < 0:
        raise ValueError("count must be non-negative")
    chooser = rng or random.Random()
    combinations = [(animal, color) for animal in ANIMALS for color in COLORS]
    if count <= len(combinations):
        picked = chooser.sample(combinations, count)
    else:
        picked = [chooser.choice(combinations) for _ in range(count)]
    return [(f"{animal} {color}", avatar_for(animal)) for animal, color in picked]


def assign_tournament_aliases(
    participants: Sequence[Participant], rng: random.Random | None = None
) -> list[Participant]:
    aliases = generate_aliases(len(participants), rng)
    return [
        replace(participant, tournament_name=alias, avatar_token=avatar)
        for participant, (alias, avatar) in zip(participants, aliases)
    ]


__all__ = [
    "ANIMALS",
    "COLORS",
    "FALLBACK_AVATAR",
    "avatar_for",
    "generate_aliases",
    "assign_tournament_aliases",
]
