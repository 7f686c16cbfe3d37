from neurodrive.evolution.strategies.diversity import DiversityMetrics
from neurodrive.evolution.strategies.novelty import NoveltyArchive, behavior_distance
from neurodrive.evolution.strategies.scoring import ScoringStrategy, combined_score
from neurodrive.evolution.strategies.selectors import TournamentSelector

__all__ = [
    "DiversityMetrics",
    "NoveltyArchive",
    "ScoringStrategy",
    "TournamentSelector",
    "behavior_distance",
    "combined_score",
]
