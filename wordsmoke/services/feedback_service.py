"""
Per-letter guess feedback
"""

import enum
from typing import Dict, List

class WordleMark(enum.Enum):
    """Feedback mark for one letter of a guess"""
    CORRECT = "correct"
    PRESENT = "present"
    ABSENT = "absent"

def marks(guess: str, goal: str) -> List[WordleMark]:
    """Mark every letter of guess against goal, ignoring case.

    Exact positional matches are CORRECT. The goal letters left over at
    mismatched positions form a pool; each remaining guess letter found in
    the pool is PRESENT and consumes one entry, the rest are ABSENT. Guess
    positions past the end of goal can never be CORRECT, and goal positions
    past the end of guess never enter the pool.
    """
    guess_chars = guess.lower()
    goal_chars = goal.lower()
    result = [WordleMark.ABSENT] * len(guess_chars)
    remaining: Dict[str, int] = {}

    for index, char in enumerate(guess_chars):
        if index >= len(goal_chars):
            continue
        if char == goal_chars[index]:
            result[index] = WordleMark.CORRECT
        else:
            remaining[goal_chars[index]] = remaining.get(goal_chars[index], 0) + 1

    for index, char in enumerate(guess_chars):
        if result[index] is not WordleMark.ABSENT:
            continue
        if remaining.get(char, 0) > 0:
            result[index] = WordleMark.PRESENT
            remaining[char] -= 1

    return result

def mark_symbols(guess: str, goal: str) -> List[str]:
    """Marks as the strings used on the wire"""
    return [mark.value for mark in marks(guess, goal)]
