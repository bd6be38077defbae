"""Ability score aggregation.

Scores are rebuilt from the base stats plus every positive "<ability>-score"
bonus modifier granted by race, class, background, feat, or item. The
precomputed bonusStats array is ignored because it double-counts those same
modifiers; it is only read by the legacy path used when the
ability_score_processor flag is off.
"""

from __future__ import annotations

from ddb_converter.core.constants import DEFAULT_ABILITY_SCORE
from ddb_converter.core.logging import get_logger
from ddb_converter.models.character import MODIFIER_BUCKETS, DdbCharacter, DdbStat
from ddb_converter.models.enums import Ability
from ddb_converter.models.results import AbilityScore, AbilityScoreResult, calculate_modifier


logger = get_logger(__name__)


def _stat_values(stats: list[DdbStat]) -> dict[Ability, int | None]:
    """Index a stats array by ability, skipping out-of-range ids."""
    values: dict[Ability, int | None] = {}
    for stat in stats:
        ability = Ability.from_ddb_id(stat.id)
        if ability is None:
            continue
        values[ability] = stat.value
    return values


def parse_bonus_value(value: object) -> int:
    """Coerce a modifier fixedValue to a usable bonus.

    Only positive whole numbers count. Strings are parsed numerically and
    anything unparseable counts as zero.

    Args:
        value: Raw fixedValue from a modifier.

    Returns:
        The bonus, or 0.

    Example:
        >>> parse_bonus_value("2")
        2
        >>> parse_bonus_value(-1)
        0
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return 0
    if number != number or number <= 0:  # NaN or non-positive
        return 0
    return int(number)


def collect_ability_bonuses(character: DdbCharacter) -> dict[str, dict[str, int]]:
    """Sum positive ability bonuses per modifier bucket.

    Args:
        character: Validated character.

    Returns:
        Bucket name -> ability value -> summed bonus; empty buckets are omitted.
    """
    sources: dict[str, dict[str, int]] = {}
    for bucket in MODIFIER_BUCKETS:
        for modifier in character.modifiers.bucket(bucket):
            if modifier.type != "bonus":
                continue
            if not modifier.sub_type or not modifier.sub_type.endswith("-score"):
                continue
            ability = Ability.from_sub_type(modifier.sub_type)
            if ability is None:
                continue
            bonus = parse_bonus_value(modifier.fixed_value)
            if bonus == 0:
                continue
            bucket_bonuses = sources.setdefault(bucket, {})
            bucket_bonuses[ability.value] = bucket_bonuses.get(ability.value, 0) + bonus
    return sources


def compute_ability_scores(
    character: DdbCharacter,
    *,
    debug: bool = False,
) -> AbilityScoreResult:
    """Compute all six ability scores.

    Args:
        character: Validated character.
        debug: Log the per-ability breakdown.

    Returns:
        AbilityScoreResult with one entry per ability.
    """
    bases = _stat_values(character.stats)
    overrides = _stat_values(character.override_stats)
    sources = collect_ability_bonuses(character)

    scores: dict[Ability, AbilityScore] = {}
    for ability in Ability:
        base = bases.get(ability)
        bonus = sum(bucket.get(ability.value, 0) for bucket in sources.values())
        scores[ability] = AbilityScore(
            ability=ability,
            base=DEFAULT_ABILITY_SCORE if base is None else base,
            bonus=bonus,
            override=overrides.get(ability),
        )

    result = AbilityScoreResult(scores=scores, bonus_sources=sources)

    if debug:
        logger.debug(
            "Ability scores computed",
            totals={a.value: s.total for a, s in scores.items()},
            bonus_sources=sources,
            overrides={a.value: v for a, v in overrides.items() if v is not None},
        )
    return result


def compute_legacy_ability_scores(character: DdbCharacter) -> AbilityScoreResult:
    """Compute scores from base + bonusStats, honoring overrides.

    Used only when the modifier-based aggregation is switched off.

    Args:
        character: Validated character.

    Returns:
        AbilityScoreResult whose bonus is the bonusStats value.
    """
    bases = _stat_values(character.stats)
    bonuses = _stat_values(character.bonus_stats)
    overrides = _stat_values(character.override_stats)

    scores = {
        ability: AbilityScore(
            ability=ability,
            base=bases.get(ability) or DEFAULT_ABILITY_SCORE,
            bonus=bonuses.get(ability) or 0,
            override=overrides.get(ability),
        )
        for ability in Ability
    }
    logger.info("Using legacy ability score calculation")
    return AbilityScoreResult(scores=scores)


__all__ = [
    "calculate_modifier",
    "parse_bonus_value",
    "collect_ability_bonuses",
    "compute_ability_scores",
    "compute_legacy_ability_scores",
]
