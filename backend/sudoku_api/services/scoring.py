import math

DIFFICULTY_MULTIPLIERS = {'easy': 0.33, 'medium': 0.7, 'hard': 1.5}
TIME_TARGETS = {'easy': 600, 'medium': 1200, 'hard': 1800}

DEFAULT_MULTIPLIER = 1
DEFAULT_TIME_TARGET = 600
BASE_POINTS = 1000
MIN_MISTAKE_PENALTY = 0.4


def calculate_score(difficulty: str, time_seconds: int, mistakes: int) -> int:
    """Score a completed puzzle.

    Finishing under the difficulty's time target earns two points per second
    saved on top of a 1000 point base. Each mistake removes 10% of the total,
    down to a floor of 40%. Unknown difficulties score with a multiplier of 1
    against a 600 second target.
    """
    multiplier = DIFFICULTY_MULTIPLIERS.get(difficulty, DEFAULT_MULTIPLIER)
    target = TIME_TARGETS.get(difficulty, DEFAULT_TIME_TARGET)
    penalty = max(MIN_MISTAKE_PENALTY, 1 - 0.1 * mistakes)
    raw = multiplier * penalty * (max(0, (target - time_seconds) * 2) + BASE_POINTS)
    # halves round up
    return int(math.floor(raw + 0.5))
