"""Unit tests for the DegreeResolver strategies used by the tuning builder."""

import pytest

from scltune.degree_strategy import (
    DegreeStep,
    IdentityResolver,
    KeyTableResolver,
    PartialOctaveResolver,
    resolver_for,
)
from scltune.errors import BuildError
from scltune.scale_parser import even_temperament_12_note_scale, parse_scl_data
from scltune.tuning_models import UNMAPPED, KeyboardMapping

WHITE_KEYS = (0, UNMAPPED, 1, UNMAPPED, 2, 3, UNMAPPED, 4, UNMAPPED, 5, UNMAPPED, 6)


def _major_scale():
    return parse_scl_data("major\n7\n9/8\n5/4\n4/3\n3/2\n5/3\n15/8\n2/1\n")


def test_resolver_for_identity_mapping() -> None:
    resolver = resolver_for(even_temperament_12_note_scale(), KeyboardMapping())
    assert isinstance(resolver, IdentityResolver)


def test_resolver_for_full_key_table() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=12, keys=tuple(range(12)))
    resolver = resolver_for(even_temperament_12_note_scale(), mapping)
    assert type(resolver) is KeyTableResolver


def test_resolver_for_key_table_without_octave_degrees() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=0, keys=tuple(range(12)))
    resolver = resolver_for(even_temperament_12_note_scale(), mapping)
    assert type(resolver) is KeyTableResolver


def test_resolver_for_partial_octave() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=7, keys=WHITE_KEYS)
    resolver = resolver_for(_major_scale(), mapping)
    assert isinstance(resolver, PartialOctaveResolver)


@pytest.mark.parametrize(
    "distance, expected",
    [
        (1, DegreeStep(rounds=0, this_round=0)),
        (12, DegreeStep(rounds=0, this_round=11)),
        (13, DegreeStep(rounds=1, this_round=0)),
        (0, DegreeStep(rounds=-1, this_round=11)),
        (-1, DegreeStep(rounds=-1, this_round=10)),
        (-12, DegreeStep(rounds=-2, this_round=11)),
        (-13, DegreeStep(rounds=-2, this_round=10)),
    ],
)
def test_identity_resolver_uses_floored_division(distance: int, expected: DegreeStep) -> None:
    resolver = IdentityResolver(even_temperament_12_note_scale(), KeyboardMapping())
    assert resolver.resolve(distance) == expected


def test_key_table_resolver_disables_unmapped_keys() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=12, keys=WHITE_KEYS)
    resolver = KeyTableResolver(even_temperament_12_note_scale(), mapping)
    assert resolver.resolve(1).disabled
    assert resolver.resolve(-2).disabled
    assert not resolver.resolve(2).disabled


def test_key_table_resolver_pushes_keys_onto_their_degrees() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=12, keys=WHITE_KEYS)
    resolver = KeyTableResolver(even_temperament_12_note_scale(), mapping)
    # key 4 plays scale degree 2, i.e. tones[1]
    assert resolver.resolve(4) == DegreeStep(rounds=0, this_round=1)
    # one key period up plays the same degree an octave higher
    assert resolver.resolve(16) == DegreeStep(rounds=1, this_round=1)


def test_partial_octave_resolver_wraps_degree_zero() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=7, keys=WHITE_KEYS)
    resolver = PartialOctaveResolver(_major_scale(), mapping)
    assert resolver.resolve(0) == DegreeStep(rounds=-1, this_round=6)
    assert resolver.resolve(2) == DegreeStep(rounds=0, this_round=0)
    assert resolver.resolve(12) == DegreeStep(rounds=0, this_round=6)
    assert resolver.resolve(-1) == DegreeStep(rounds=-1, this_round=5)


def test_scale_position_through_key_table() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=12, keys=WHITE_KEYS)
    resolver = KeyTableResolver(even_temperament_12_note_scale(), mapping)
    assert resolver.scale_position(9) == 5
    assert resolver.scale_position(21) == 17
    assert resolver.scale_position(-3) == -7


def test_scale_position_partial_octave_counts_scale_periods() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=7, keys=WHITE_KEYS)
    resolver = PartialOctaveResolver(_major_scale(), mapping)
    assert resolver.scale_position(9) == 5
    assert resolver.scale_position(-3) == -2


def test_scale_position_on_unmapped_key_raises() -> None:
    mapping = KeyboardMapping(count=12, octave_degrees=12, keys=WHITE_KEYS, tuning_constant_note=61)
    resolver = KeyTableResolver(even_temperament_12_note_scale(), mapping)
    with pytest.raises(BuildError, match="unmapped key"):
        resolver.scale_position(1)


def test_key_on_scale_size_plays_the_period() -> None:
    mapping = KeyboardMapping(count=2, octave_degrees=2, keys=(0, 7))
    resolver = KeyTableResolver(_major_scale(), mapping)
    assert resolver.resolve(1) == DegreeStep(rounds=0, this_round=6)
    assert resolver.scale_position(1) == 7


def test_key_beyond_scale_raises() -> None:
    mapping = KeyboardMapping(count=2, octave_degrees=2, keys=(0, 8))
    with pytest.raises(BuildError, match="scale degree 8"):
        KeyTableResolver(_major_scale(), mapping)
