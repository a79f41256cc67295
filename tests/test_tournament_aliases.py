import random

from live_tournament import Participant
from live_tournament.aliases import (
    ANIMALS,
    COLORS,
    FALLBACK_AVATAR,
    assign_tournament_aliases,
    avatar_for,
    generate_aliases,
)


def test_generate_aliases_are_unique():
    aliases = generate_aliases(16, random.Random(1))

    names = [name for name, _ in aliases]
    assert len(set(names)) == 16
    for name, avatar in aliases:
        animal, color = name.split(" ")
        assert animal in ANIMALS
        assert color in COLORS
        assert avatar == avatar_for(animal)


def test_generate_aliases_is_deterministic_for_a_seed():
    first = generate_aliases(4, random.Random(3))
    assert first == generate_aliases(4, random.Random(3))


def test_generate_aliases_beyond_unique_combinations():
    total = len(ANIMALS) * len(COLORS)
    assert len(generate_aliases(total + 2, random.Random(5))) == total + 2


def test_avatar_falls_back_for_animals_without_emoji():
    assert avatar_for("Jaguar") == FALLBACK_AVATAR
    assert avatar_for("Tigre") == "🐯"


def test_assign_tournament_aliases_keeps_identity():
    people = [Participant("p1", "Ana"), Participant("p2", "Ben")]

    aliased = assign_tournament_aliases(people, random.Random(2))

    assert [person.participant_id for person in aliased] == ["p1", "p2"]
    assert [person.name for person in aliased] == ["Ana", "Ben"]
    assert all(person.tournament_name for person in aliased)
    assert aliased[0].display_name == aliased[0].tournament_name
    assert people[0].tournament_name is None
