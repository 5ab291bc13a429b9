import threading
from typing import Dict, List

MATCH_AWARD = 10


class Leaderboard:
    """Process-wide running totals keyed by display name.

    Lives as long as the process; totals only ever grow.
    """

    def __init__(self) -> None:
        self._points: Dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, name: str, points: int) -> int:
        with self._lock:
            total = self._points.get(name, 0) + points
            self._points[name] = total
            return total

    def points_for(self, name: str) -> int:
        return self._points.get(name, 0)

    def top(self, limit: int = 50) -> List[Dict[str, object]]:
        with self._lock:
            ranked = sorted(self._points.items(), key=lambda item: item[1], reverse=True)
        return [{'name': name, 'points': points} for name, points in ranked[:limit]]


def award_match(player, leaderboard: Leaderboard, award: int = MATCH_AWARD) -> None:
    """Credit one matched pair to the player and to the global leaderboard."""
    player.score += award
    leaderboard.add(player.name, award)
