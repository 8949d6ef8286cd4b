"""RCD (responsabilité civile décennale) premium calculator.

Pure functions without ORM access. Date-dependent factors are computed against
`reference_date`, which defaults to the effective date and then to today.

Factors are applied in a fixed order, recorded in `RcdPremiumResult.steps`:

1. activity shares converted from percent (values > 0 divided by 100);
2. refusal checks;
3. majorations: etp, qualif, date_creation, temps_sans_activite_12_mois,
   annee_experience, assureur_defaillant, nombre_annee_assurance_continue;
4. per activity: base rate, minimum premium, degressivity, share-weighted premium;
5. minimum premium, premium HT, majorated premium HT, tax, premium TTC;
6. prior-period takeover, when the previous insurer is a defaulting one.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from tariff.tables import (
    ACTIVITIES,
    DEFAULT_TAX_RATE,
    DEFAULT_TI_RATE,
    DEFAULTING_INSURERS,
    DEGRESSIVITY_BAND_1,
    DEGRESSIVITY_BAND_2,
    DEGRESSIVITY_BAND_3,
    PRIOR_PERIOD_TAX_FACTOR,
    REVENUE_FLOOR,
)

ZERO = Decimal("0")
ONE = Decimal("1")
CENT = Decimal("0.01")
DAYS_PER_YEAR = Decimal("365")

MAJORATION_ORDER = (
    "etp",
    "qualif",
    "date_creation",
    "temps_sans_activite_12_mois",
    "annee_experience",
    "assureur_defaillant",
    "nombre_annee_assurance_continue",
)


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _decimal(value, default=ZERO) -> Decimal:
    if value is None or value == "":
        return default
    return Decimal(str(value))


@dataclass(frozen=True)
class ActivityShare:
    code: int
    ca_share_percent: Decimal


@dataclass(frozen=True)
class PriorClaim:
    year: int
    num_claims: int
    total_cost: Decimal


@dataclass(frozen=True)
class RcdPremiumParams:
    ca_declared: Decimal
    etp: Decimal
    activites: list
    date_creation: date | None = None
    temps_sans_activite_12_mois: bool = False
    annee_experience: Decimal | None = None
    assureur_defaillant: bool = False
    nombre_annee_assurance_continue: Decimal = ZERO
    qualif: bool = False
    ancienne_assurance: str = ""
    activite_sans_etre_assure: bool = False
    experience_dirigeant: Decimal | None = None
    nom_de_l_assureur: str = ""
    date_effet: date | None = None
    date_fin_couverture_precedente: date | None = None
    sinistres_precedents: list = field(default_factory=list)
    taux_ti: Decimal = DEFAULT_TI_RATE
    coefficient_antecedent: Decimal = ONE
    tax_rate: Decimal = DEFAULT_TAX_RATE


@dataclass
class ActivityPremium:
    code: int
    title: str
    part_ca: Decimal
    taux_base: Decimal
    prime_mini_act: Decimal
    degressivity: Decimal
    prime_ref_act: Decimal
    prime_100_ref: Decimal
    prime_100_min: Decimal


@dataclass
class PriorPeriodResult:
    pourcentage_annee_reprise: Decimal
    taux_ti_pondere: Decimal
    ratio_sp: Decimal
    frequence_sinistres: Decimal
    categorie_anciennete: str
    categorie_frequence: str
    categorie_ratio_sp: str
    coefficient_majoration: Decimal
    analyse_compagnie_requise: bool
    prime_reprise_avant_majoration: Decimal
    prime_reprise_apres_majoration: Decimal
    prime_reprise_passe_ttc: Decimal


@dataclass
class RcdPremiumResult:
    refus: bool
    refus_reason: str
    majorations: dict
    activities: list
    prime_mini_ht: Decimal
    prime_ht: Decimal
    majoration_total: Decimal
    prime_ht_majoree: Decimal
    tax_amount: Decimal
    prime_ttc: Decimal
    prior_period: PriorPeriodResult | None = None
    notes: list = field(default_factory=list)
    steps: list = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


def normalize_shares(activites) -> list[ActivityShare]:
    """Convert percent shares to fractions; no renormalisation to 1."""

    shares = []
    for activite in activites or []:
        share = _decimal(activite.ca_share_percent)
        shares.append(
            ActivityShare(
                code=int(activite.code),
                ca_share_percent=share / 100 if share > 0 else share,
            )
        )
    return shares


def check_refusal(*, activite_sans_etre_assure: bool, experience_dirigeant) -> tuple[bool, str]:
    if activite_sans_etre_assure:
        return True, "Activité sans être assurée"
    if experience_dirigeant is not None and _decimal(experience_dirigeant) < 1:
        return True, "Expérience du dirigeant"
    return False, ""


def company_age_years(date_creation: date | None, reference_date: date) -> Decimal | None:
    if date_creation is None:
        return None
    return Decimal((reference_date - date_creation).days) / Decimal("365.25")


def majoration_etp(etp: Decimal, activity_count: int) -> Decimal:
    if etp == 1:
        if activity_count <= 3:
            return ZERO
        if activity_count <= 5:
            return Decimal("0.1")
    if 1 < etp < 5:
        if activity_count <= 5:
            return ZERO
        if activity_count <= 8:
            return Decimal("0.1")
    return ZERO


def majoration_company_age(age_years: Decimal | None) -> Decimal:
    if age_years is None:
        return ZERO
    if age_years < 1:
        return Decimal("0.2")
    if 1 < age_years < 3:
        return Decimal("0.1")
    return ZERO


def majoration_experience(annee_experience) -> Decimal:
    if annee_experience is None:
        return ZERO
    years = _decimal(annee_experience)
    if 1 < years < 3:
        return Decimal("0.05")
    if years > 5:
        return Decimal("-0.05")
    return ZERO


def majoration_continuous_coverage(years) -> Decimal:
    years = _decimal(years)
    if years <= 1:
        return Decimal("0.1")
    if years <= 2:
        return Decimal("0.05")
    return ZERO


def compute_majorations(params: RcdPremiumParams, activity_count: int, reference_date: date) -> dict:
    age = company_age_years(params.date_creation, reference_date)
    values = {
        "etp": majoration_etp(_decimal(params.etp), activity_count),
        "qualif": Decimal("-0.05") if params.qualif else ZERO,
        "date_creation": majoration_company_age(age),
        "temps_sans_activite_12_mois": Decimal("0.2") if params.temps_sans_activite_12_mois else ZERO,
        "annee_experience": majoration_experience(params.annee_experience),
        "assureur_defaillant": Decimal("0.2") if params.assureur_defaillant else ZERO,
        "nombre_annee_assurance_continue": majoration_continuous_coverage(
            params.nombre_annee_assurance_continue
        ),
    }
    return {key: values[key] for key in MAJORATION_ORDER}


def degressivity(revenue: Decimal, degressivity1: Decimal, degressivity2: Decimal) -> Decimal:
    """Revenue-band degressivity: flat, then two linear slopes, then floor."""

    if revenue <= DEGRESSIVITY_BAND_1:
        return degressivity1
    if revenue <= DEGRESSIVITY_BAND_2:
        return ONE - (ONE - degressivity1) * (revenue - DEGRESSIVITY_BAND_1) / (
            DEGRESSIVITY_BAND_2 - DEGRESSIVITY_BAND_1
        )
    if revenue < DEGRESSIVITY_BAND_3:
        return degressivity1 - (degressivity1 - degressivity2) * (revenue - DEGRESSIVITY_BAND_2) / (
            DEGRESSIVITY_BAND_3 - DEGRESSIVITY_BAND_2
        )
    return degressivity2


def calculate_rcd_premium(params: RcdPremiumParams, reference_date: date | None = None) -> RcdPremiumResult:
    reference_date = reference_date or params.date_effet or date.today()
    notes = []
    steps = []

    shares = normalize_shares(params.activites)
    steps.append("shares")

    refus, refus_reason = check_refusal(
        activite_sans_etre_assure=params.activite_sans_etre_assure,
        experience_dirigeant=params.experience_dirigeant,
    )
    steps.append("refusal")

    if params.annee_experience is None:
        notes.append("missing_experience")
    majorations = compute_majorations(params, len(shares), reference_date)
    steps.extend(f"majoration:{key}" for key in MAJORATION_ORDER)

    revenue = _decimal(params.ca_declared)
    if revenue < REVENUE_FLOOR:
        notes.append("revenue_floor")
        revenue = REVENUE_FLOOR
    if not shares:
        notes.append("no_activity")

    age_factor = ONE + majorations["date_creation"]
    activities = []
    weighted_rate = ZERO
    for share in shares:
        activity = ACTIVITIES.get(share.code)
        if activity is None:
            notes.append(f"unknown_activity:{share.code}")
            continue
        weighted_rate += activity.rate * share.ca_share_percent
        taux_base = activity.rate * age_factor
        prime_mini_act = taux_base * REVENUE_FLOOR
        deg = degressivity(revenue, activity.degressivity1, activity.degressivity2)
        prime_ref_act = prime_mini_act * deg
        prime_100_ref = taux_base * deg * revenue - prime_ref_act
        activities.append(
            ActivityPremium(
                code=activity.code,
                title=activity.title,
                part_ca=share.ca_share_percent,
                taux_base=taux_base,
                prime_mini_act=_money(prime_mini_act),
                degressivity=deg,
                prime_ref_act=_money(prime_ref_act),
                prime_100_ref=_money(prime_100_ref),
                prime_100_min=_money(prime_100_ref * share.ca_share_percent),
            )
        )
    steps.append("activities")

    prime_mini_ht = _money(REVENUE_FLOOR * weighted_rate * age_factor)
    prime_ht = prime_mini_ht + sum((activity.prime_100_min for activity in activities), ZERO)
    # date_creation is already part of each base rate.
    majoration_total = sum(
        (value for key, value in majorations.items() if key != "date_creation"),
        ZERO,
    )
    prime_ht_majoree = _money(prime_ht * (ONE + majoration_total))
    tax_amount = _money(prime_ht_majoree * params.tax_rate)
    steps.append("totals")

    prior_period = None
    if (
        (params.nom_de_l_assureur or "").upper() in DEFAULTING_INSURERS
        and params.date_effet is not None
        and params.date_fin_couverture_precedente is not None
    ):
        prior_period = calculate_prior_period_takeover(
            taux_ti=params.taux_ti,
            prime_annuelle_ht=prime_ht,
            date_effet=params.date_effet,
            date_fin_couverture_precedente=params.date_fin_couverture_precedente,
            sinistres_precedents=params.sinistres_precedents,
            coefficient_antecedent=params.coefficient_antecedent,
            reference_year=reference_date.year,
        )
        steps.append("prior_period")

    return RcdPremiumResult(
        refus=refus,
        refus_reason=refus_reason,
        majorations=majorations,
        activities=activities,
        prime_mini_ht=prime_mini_ht,
        prime_ht=_money(prime_ht),
        majoration_total=majoration_total,
        prime_ht_majoree=prime_ht_majoree,
        tax_amount=tax_amount,
        prime_ttc=prime_ht_majoree + tax_amount,
        prior_period=prior_period,
        notes=notes,
        steps=steps,
    )


def _seniority_category(years: int) -> str:
    if years < 3:
        return "< 3ans"
    if years <= 7:
        return "3 à 7 ans"
    return "> 7 ans"


def _frequency_category(frequency: Decimal) -> str:
    if frequency == 0:
        return "0"
    if frequency <= Decimal("0.5"):
        return "0 à 0.5"
    if frequency <= 1:
        return "0.5 à 1"
    if frequency <= 2:
        return "1 à 2"
    return "> 2"


def _ratio_category(ratio: Decimal) -> str:
    if ratio == 0:
        return "0"
    if ratio <= Decimal("0.5"):
        return "0 à 0.5"
    if ratio <= Decimal("0.7"):
        return "0.5 à 0.7"
    if ratio <= 1:
        return "0.7 à 1"
    return "> 1"


# (seniority, frequency) -> {ratio category: coefficient}; a missing entry means
# the insurer has to analyse the file.
_TAKEOVER_COEFFICIENTS = {
    ("< 3ans", "0 à 0.5"): {"0 à 0.5": "1.1", "0.5 à 0.7": "1.2", "0.7 à 1": "1.3"},
    ("3 à 7 ans", "0 à 0.5"): {"0 à 0.5": "0.97", "0.5 à 0.7": "1.1", "0.7 à 1": "1.2"},
    ("> 7 ans", "0 à 0.5"): {"0 à 0.5": "0.9", "0.5 à 0.7": "1.0", "0.7 à 1": "1.1", "> 1": "1.2"},
    ("> 7 ans", "0.5 à 1"): {"0.5 à 0.7": "0.95", "0.7 à 1": "1.05", "> 1": "1.15"},
}
_NO_CLAIM_COEFFICIENTS = {"< 3ans": "1.0", "3 à 7 ans": "0.9", "> 7 ans": "0.8"}


def takeover_coefficient(seniority: str, frequency: str, ratio: str) -> tuple[Decimal, bool]:
    """Return (coefficient, company_analysis_required)."""

    if frequency == "0":
        return Decimal(_NO_CLAIM_COEFFICIENTS[seniority]), False
    row = _TAKEOVER_COEFFICIENTS.get((seniority, frequency))
    if not row or ratio not in row:
        # "> 7 ans" with a low frequency and no loss keeps the neutral coefficient.
        if seniority == "> 7 ans" and frequency == "0 à 0.5" and ratio == "0":
            return ONE, False
        return ONE, True
    return Decimal(row[ratio]), False


def calculate_prior_period_takeover(
    *,
    taux_ti: Decimal,
    prime_annuelle_ht: Decimal,
    date_effet: date,
    date_fin_couverture_precedente: date,
    sinistres_precedents=(),
    coefficient_antecedent: Decimal = ONE,
    reference_year: int,
) -> PriorPeriodResult:
    """Premium for covering the uninsured gap before the new contract."""

    gap_days = Decimal((date_effet - date_fin_couverture_precedente).days)
    share_of_year = min(ONE, gap_days / DAYS_PER_YEAR)
    taux_ti_pondere = _decimal(taux_ti) * share_of_year

    claims = list(sinistres_precedents or [])
    if claims:
        years = max(1, reference_year - min(claim.year for claim in claims))
    else:
        years = 1
    total_cost = sum((_decimal(claim.total_cost) for claim in claims), ZERO)
    total_claims = sum(int(claim.num_claims) for claim in claims)
    years_with_claims = sum(1 for claim in claims if claim.num_claims > 0)

    prime_with_coefficient = _decimal(prime_annuelle_ht) * _decimal(coefficient_antecedent)
    ratio_sp = total_cost / prime_with_coefficient if prime_with_coefficient > 0 else ZERO
    frequency = min(Decimal(total_claims) / years, Decimal(years_with_claims) / years)

    seniority_category = _seniority_category(years)
    frequency_category = _frequency_category(frequency)
    ratio_category = _ratio_category(ratio_sp)
    coefficient, analysis_required = takeover_coefficient(
        seniority_category, frequency_category, ratio_category
    )

    before = taux_ti_pondere * _decimal(prime_annuelle_ht)
    after = before if analysis_required else before * coefficient

    return PriorPeriodResult(
        pourcentage_annee_reprise=_money(share_of_year * 100),
        taux_ti_pondere=taux_ti_pondere,
        ratio_sp=_money(ratio_sp),
        frequence_sinistres=_money(frequency),
        categorie_anciennete=seniority_category,
        categorie_frequence=frequency_category,
        categorie_ratio_sp=ratio_category,
        coefficient_majoration=coefficient,
        analyse_compagnie_requise=analysis_required,
        prime_reprise_avant_majoration=_money(before),
        prime_reprise_apres_majoration=_money(after),
        prime_reprise_passe_ttc=_money(after * PRIOR_PERIOD_TAX_FACTOR),
    )
