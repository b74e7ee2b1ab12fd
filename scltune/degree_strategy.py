"""DegreeResolver: Strategy pattern for placing a keyboard key within the scale."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from scltune.errors import BuildError
from scltune.tuning_models import KeyboardMapping, Scale


@dataclass(frozen=True)
class DegreeStep:
    """
    Where a key lands relative to the scale.

    Attributes:
        rounds:     Whole scale periods above (or below, if negative) the
                    period that starts on the middle note.
        this_round: Index into ``Scale.tones`` within that period.
        disabled:   True for keys the mapping leaves silent.
    """

    rounds: int
    this_round: int
    disabled: bool = False


class DegreeResolver(ABC):
    """
    Abstract Strategy for turning a key's distance from the middle note into
    a (rounds, this_round) pair.

    Concrete subclasses implement ``_step()`` for the identity mapping, a key
    table that spans the scale period, and a key table that spans a partial
    octave.
    """

    def __init__(self, scale: Scale, mapping: KeyboardMapping) -> None:
        self.scale_count = scale.count
        self.mapping = mapping

    @abstractmethod
    def _step(self, distance: int) -> DegreeStep:
        """Resolve ``distance`` (keys above the middle note) before normalisation."""

    @abstractmethod
    def scale_position(self, distance: int) -> int:
        """
        Return the scale position played by the key ``distance`` keys above
        the middle note, counting whole periods (so it may be negative or
        larger than the scale).

        Raises:
            BuildError: If the key is unmapped.
        """

    def resolve(self, distance: int) -> DegreeStep:
        """Resolve ``distance`` into a DegreeStep with ``this_round`` in ``[0, scale_count)``."""
        step = self._step(distance)
        if step.disabled or step.this_round >= 0:
            return step
        return DegreeStep(rounds=step.rounds - 1, this_round=step.this_round + self.scale_count)


class IdentityResolver(DegreeResolver):
    """Every key plays the next scale degree: the mapping has no key table."""

    def _step(self, distance: int) -> DegreeStep:
        return DegreeStep(
            rounds=(distance - 1) // self.scale_count,
            this_round=(distance - 1) % self.scale_count,
        )

    def scale_position(self, distance: int) -> int:
        return distance


class KeyTableResolver(DegreeResolver):
    """
    Keys are looked up in the mapping's key table, which repeats every
    ``mapping.count`` keys and advances ``mapping.count`` scale degrees per
    repetition.
    """

    def __init__(self, scale: Scale, mapping: KeyboardMapping) -> None:
        super().__init__(scale, mapping)
        for index, degree in enumerate(mapping.keys):
            # degree == count plays the period itself
            if degree > scale.count:
                raise BuildError(
                    f"Keyboard mapping entry {index} maps to scale degree {degree}, "
                    f"but the scale only has {scale.count} notes."
                )

    @property
    def degrees_per_rotation(self) -> int:
        return self.mapping.count

    def _locate(self, distance: int) -> tuple[int, int, int]:
        """Return (mapping_key, rotations, mapped_degree) for ``distance``."""
        mapping_key = distance % self.mapping.count
        rotations = distance // self.mapping.count
        return mapping_key, rotations, self.mapping.keys[mapping_key]

    def _step(self, distance: int) -> DegreeStep:
        mapping_key, _rotations, degree = self._locate(distance)
        if degree < 0:
            return DegreeStep(rounds=0, this_round=0, disabled=True)

        push = mapping_key - degree
        return DegreeStep(
            rounds=(distance - push - 1) // self.scale_count,
            this_round=(distance - push - 1) % self.scale_count,
        )

    def scale_position(self, distance: int) -> int:
        mapping_key, rotations, degree = self._locate(distance)
        if degree < 0:
            raise BuildError(
                f"The tuning constant note {self.mapping.tuning_constant_note} "
                f"falls on unmapped key {mapping_key} of the keyboard mapping."
            )
        return degree + rotations * self.degrees_per_rotation


class PartialOctaveResolver(KeyTableResolver):
    """
    The key table covers ``octave_degrees`` scale degrees rather than the
    whole key table, e.g. a 12-key layout that only plays a 7-note scale.
    Each repetition of the key table advances one full scale period.
    """

    @property
    def degrees_per_rotation(self) -> int:
        return self.scale_count

    def _step(self, distance: int) -> DegreeStep:
        _mapping_key, rotations, degree = self._locate(distance)
        if degree < 0:
            return DegreeStep(rounds=0, this_round=0, disabled=True)

        rounds = rotations
        this_round = degree - 1
        if this_round < 0:
            this_round = self.mapping.octave_degrees - 1
            rounds -= 1
        return DegreeStep(rounds=rounds, this_round=this_round)


def resolver_for(scale: Scale, mapping: KeyboardMapping) -> DegreeResolver:
    """Return the DegreeResolver matching the shape of ``mapping``."""
    if mapping.count == 0:
        return IdentityResolver(scale, mapping)
    if mapping.octave_degrees > 0 and mapping.octave_degrees != mapping.count:
        return PartialOctaveResolver(scale, mapping)
    return KeyTableResolver(scale, mapping)
