from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class RcdActivity:
    code: int
    title: str
    rate: Decimal
    degressivity1: Decimal
    degressivity2: Decimal


_STRUCTURE_DEGRESSIVITY = (Decimal("0.85"), Decimal("0.75"))
_FINISHING_DEGRESSIVITY = (Decimal("0.8"), Decimal("0.7"))


def _activity(code, title, rate, degressivity):
    return RcdActivity(code, title, Decimal(rate), degressivity[0], degressivity[1])


ACTIVITIES = {
    activity.code: activity
    for activity in (
        _activity(1, "Voiries Réseaux Divers (VRD)", "0.0382", _STRUCTURE_DEGRESSIVITY),
        _activity(2, "Maçonnerie et béton armé", "0.0407", _STRUCTURE_DEGRESSIVITY),
        _activity(3, "Charpente et structure en bois", "0.0439", _STRUCTURE_DEGRESSIVITY),
        _activity(4, "Charpente et structure métallique", "0.0439", _STRUCTURE_DEGRESSIVITY),
        _activity(5, "Couverture", "0.0366", _STRUCTURE_DEGRESSIVITY),
        _activity(6, "Menuiseries extérieures bois et PVC", "0.0357", _STRUCTURE_DEGRESSIVITY),
        _activity(7, "Menuiseries extérieures métalliques", "0.0357", _STRUCTURE_DEGRESSIVITY),
        _activity(8, "Bardages de façades", "0.0379", _STRUCTURE_DEGRESSIVITY),
        _activity(9, "Menuiseries intérieures", "0.0343", _FINISHING_DEGRESSIVITY),
        _activity(10, "Plâtrerie – Staff – Stuc – Gypserie", "0.0416", _FINISHING_DEGRESSIVITY),
        _activity(11, "Serrurerie - Métallerie", "0.0256", _FINISHING_DEGRESSIVITY),
        _activity(12, "Vitrerie - Miroiterie", "0.0253", _FINISHING_DEGRESSIVITY),
        _activity(13, "Peinture", "0.0296", _FINISHING_DEGRESSIVITY),
        _activity(
            14,
            "Revêtement intérieur de surfaces en matériaux souples et parquets",
            "0.0227",
            _FINISHING_DEGRESSIVITY,
        ),
        _activity(
            15,
            "Revêtement de surfaces en matériaux durs - Chapes et sols coulés",
            "0.0361",
            _FINISHING_DEGRESSIVITY,
        ),
        _activity(16, "Isolation thermique et acoustique", "0.0251", _FINISHING_DEGRESSIVITY),
        _activity(17, "Plomberie", "0.0293", _FINISHING_DEGRESSIVITY),
        _activity(18, "Installations thermiques de génie climatique", "0.0293", _FINISHING_DEGRESSIVITY),
        _activity(
            19,
            "Installations d'aéraulique et de conditionnement d'air",
            "0.0293",
            _FINISHING_DEGRESSIVITY,
        ),
        _activity(20, "Electricité -Télécommunications", "0.0298", _FINISHING_DEGRESSIVITY),
    )
}

DEFAULTING_INSURERS = frozenset(
    ("ACASTA", "ALPHA_INSURANCE", "CBL", "EIL", "ELITE", "GABLE", "QUDOS")
)

# Revenue floor used for minimum premiums.
REVENUE_FLOOR = Decimal("70000")
DEGRESSIVITY_BAND_1 = Decimal("250000")
DEGRESSIVITY_BAND_2 = Decimal("500000")
DEGRESSIVITY_BAND_3 = Decimal("1000000")

DEFAULT_TAX_RATE = Decimal("0.09")
PRIOR_PERIOD_TAX_FACTOR = Decimal("1.2")
DEFAULT_TI_RATE = Decimal("0.7")


def activity_title(code) -> str:
    try:
        activity = ACTIVITIES.get(int(code))
    except (TypeError, ValueError):
        return ""
    return activity.title if activity is not None else ""
