"""Dice utilities for backgammon.

This module handles dice combinations, their probabilities and the die
orderings fed to move generation.
"""

from typing import List
from bgequity.core.types import Dice


def all_dice_rolls() -> List[Dice]:
    """Generate all 21 unique dice outcomes.

    In backgammon, (2,3) and (3,2) are equivalent, so there are 21 unique rolls:
    - 6 doubles: (1,1), (2,2), (3,3), (4,4), (5,5), (6,6)
    - 15 non-doubles: (1,2), (1,3), ..., (5,6)

    Returns:
        List of all 21 unique dice combinations, sorted
    """
    rolls = []
    for die1 in range(1, 7):
        for die2 in range(die1, 7):  # die2 >= die1 to avoid duplicates
            rolls.append((die1, die2))
    return rolls


def initial_rolls() -> List[Dice]:
    """Generate the 30 possible opening rolls.

    The first die is White's, the second Black's. Ties are re-rolled, so they
    never decide who starts and are left out.

    Returns:
        List of ordered (white_die, black_die) pairs with distinct values
    """
    return [
        (white, black)
        for white in range(1, 7)
        for black in range(1, 7)
        if white != black
    ]


def is_doubles(dice: Dice) -> bool:
    """Check if dice roll is doubles.

    Args:
        dice: Dice roll tuple

    Returns:
        True if both dice show the same value
    """
    return dice[0] == dice[1]


def dice_values(dice: Dice) -> List[int]:
    """Get the dice values to use for moves.

    For doubles, you get 4 moves. For non-doubles, you get 2 moves.

    Examples:
        >>> dice_values((3, 5))
        [3, 5]
        >>> dice_values((4, 4))
        [4, 4, 4, 4]
    """
    if is_doubles(dice):
        return [dice[0]] * 4
    else:
        return [dice[0], dice[1]]


def die_orderings(dice: Dice) -> List[List[int]]:
    """Get every order in which the dice of a roll may be played.

    Legality can depend on which die is played first, so both orders of a
    non-double are tried. Doubles have a single ordering of four equal dice.

    Examples:
        >>> die_orderings((2, 1))
        [[2, 1], [1, 2]]
        >>> die_orderings((3, 3))
        [[3, 3, 3, 3]]
    """
    if is_doubles(dice):
        return [dice_values(dice)]
    x, y = dice
    return [[x, y], [y, x]]


def dice_probability(dice: Dice) -> float:
    """Probability of rolling this unordered pair.

    Doubles come up 1 time in 36, any other pair 2 times (either order).
    """
    return 1 / 36 if is_doubles(dice) else 2 / 36


def dice_to_string(dice: Dice) -> str:
    """Convert dice to readable string.

    Examples:
        >>> dice_to_string((3, 5))
        '3-5'
        >>> dice_to_string((4, 4))
        'Double 4s'
    """
    if is_doubles(dice):
        return f"Double {dice[0]}s"
    else:
        return f"{dice[0]}-{dice[1]}"


# Precompute all dice rolls for efficiency
ALL_DICE_ROLLS = all_dice_rolls()

# Probabilities for each dice outcome
# Doubles have probability 1/36, non-doubles have probability 2/36 = 1/18
DICE_PROBABILITIES = {
    dice: dice_probability(dice)
    for dice in ALL_DICE_ROLLS
}
