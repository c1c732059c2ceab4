"""Event classification service - maps a race name to a sport category."""

from app.subjects import Discipline, SportCategory, TrackedSubject

# Checked in order; the first group with a hit wins, road is the default.
# Cyclocross comes first: its series names are the most specific signal.
DISCIPLINE_KEYWORDS: tuple[tuple[Discipline, frozenset[str]], ...] = (
    (
        Discipline.CROSS,
        frozenset({
            "cyclocross",
            "cyclo-cross",
            " cx ",
            "superprestige",
            "x2o",
            "dvv",
            "bpost",
            "soudal",
            "exact cross",
            "veldrit",
        }),
    ),
    (
        Discipline.MOUNTAIN,
        frozenset({
            "mtb",
            "mountain bike",
            "xco",
            "xcc",
            "xcm",
            "cross country",
            "cross-country",
        }),
    ),
)


def detect_discipline(name: str) -> Discipline:
    # Padding lets " cx " match at either end of the name
    padded = f" {name.lower()} "
    for discipline, keywords in DISCIPLINE_KEYWORDS:
        if any(keyword in padded for keyword in keywords):
            return discipline
    return Discipline.ROAD


class EventClassifier:
    """Keyword classifier, parameterised per tracked subject.

    The discipline is detected from the name alone and then mapped through
    the subject's category map, so a subject without a mountain program can
    fold those races into another category.
    """

    @staticmethod
    def classify(name: str, subject: TrackedSubject) -> SportCategory:
        return subject.category_map.for_discipline(detect_discipline(name))
