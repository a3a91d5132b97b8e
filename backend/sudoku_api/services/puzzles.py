import random
from typing import Dict, List

# blanks per difficulty; unknown difficulties fall back to easy
CELLS_REMOVED = {'easy': 36, 'medium': 46, 'hard': 54}

Grid = List[List[int]]


def _solved_grid(rng: random.Random) -> Grid:
    """Shuffle the canonical pattern grid while keeping it a valid solution."""
    def shuffled_axis():
        bands = rng.sample(range(3), 3)
        return [band * 3 + offset for band in bands for offset in rng.sample(range(3), 3)]

    rows, cols = shuffled_axis(), shuffled_axis()
    digits = rng.sample(range(1, 10), 9)
    return [[digits[(3 * (r % 3) + r // 3 + c) % 9] for c in cols] for r in rows]


def generate_puzzle(difficulty: str, rng: random.Random = None) -> Dict[str, Grid]:
    """Return ``{'puzzle': grid with 0 for blanks, 'solution': full grid}``."""
    rng = rng or random.Random()
    solution = _solved_grid(rng)
    puzzle = [row[:] for row in solution]
    for cell in rng.sample(range(81), CELLS_REMOVED.get(difficulty, CELLS_REMOVED['easy'])):
        puzzle[cell // 9][cell % 9] = 0
    return {'puzzle': puzzle, 'solution': solution}
