import math
from collections import namedtuple
from typing import List, Optional, Sequence


Verdict = namedtuple('Verdict', ['rank', 'label', 'badge'])

# (inclusive upper bound on the final average in ms, label, badge), best first
VERDICT_TIERS = (
    (260, 'Réflexes de pilote !', '🏁'),
    (320, 'Très solide', '🔥'),
    (380, 'Correct', '👌'),
)
FALLBACK_VERDICT = ('À polir', '✨')


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average(times: Sequence[int]) -> Optional[int]:
    if not times:
        return None
    return round_half_up(sum(times) / len(times))


def best(times: Sequence[int]) -> Optional[int]:
    if not times:
        return None
    return min(times)


def verdict_for(avg_ms: int) -> Verdict:
    """Classify a final session average.

    Rank 0 is the top tier; a lower average never yields a higher rank.
    """
    for rank, (ceiling, label, badge) in enumerate(VERDICT_TIERS):
        if avg_ms <= ceiling:
            return Verdict(rank, label, badge)
    label, badge = FALLBACK_VERDICT
    return Verdict(len(VERDICT_TIERS), label, badge)


def verdict_table() -> List[dict]:
    rows = [
        {'max_average_ms': ceiling, 'label': label, 'badge': badge}
        for ceiling, label, badge in VERDICT_TIERS
    ]
    rows.append({'max_average_ms': None, 'label': FALLBACK_VERDICT[0], 'badge': FALLBACK_VERDICT[1]})
    return rows


def session_summary(avg_ms: int, best_ms: int, record_average: Optional[int],
                    record_single: Optional[int], verdict: Verdict) -> str:
    parts = [f"Moyenne: {avg_ms} ms", f"Meilleur: {best_ms} ms"]
    if record_average:
        parts.append(f"Record moy.: {record_average} ms")
    if record_single:
        parts.append(f"Record single: {record_single} ms")
    return f"{' • '.join(parts)} — {verdict.label} {verdict.badge}"
